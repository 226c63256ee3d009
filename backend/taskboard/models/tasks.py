"""Task model owned by a single user."""

import enum

from db.session import Base
from models.auth import User, utcnow
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

# Largest value an Integer primary key holds on every supported backend.
MAX_TASK_ID = 2**31 - 1


class Task(Base):
    """A to-do item.

    Attributes:
        id: Primary key.
        title: Short summary, required.
        description: Optional longer text, empty string when unset.
        status: One of :class:`TaskStatus` values.
        priority: One of :class:`TaskPriority` values.
        due_date: Optional calendar date.
        user_id: Owner of the task.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value, index=True)
    priority = Column(String(10), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = Column(Date, nullable=True)
    user_id = Column(
        Integer, ForeignKey(User.id, ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
