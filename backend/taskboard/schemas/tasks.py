"""Schemas for task requests and responses."""

from datetime import date, datetime
from typing import Literal

from models.tasks import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskPriority, TaskStatus
from pydantic import Field, field_validator
from schemas.common import CamelModel

SortField = Literal["createdAt", "updatedAt", "title", "dueDate", "priority"]
SortOrder = Literal["asc", "desc"]


def check_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return value


def check_description(value):
    if value is None:
        return ""
    if not isinstance(value, str):
        # Left to the str type check.
        return value
    value = value.strip()
    if len(value) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
    return value


def parse_due_date(value):
    """Accept ISO-8601 dates or datetimes and keep only the calendar day."""

    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValueError("Due date must be a valid date")


class TaskBase(CamelModel):
    """Fields shared by task requests and responses."""

    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None

    class Config(CamelModel.Config):
        use_enum_values = True
        validate_default = True


class TaskCreate(TaskBase):
    """Request body for creating a task."""

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return check_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value):
        return check_description(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, value):
        return parse_due_date(value)


class TaskUpdate(CamelModel):
    """Partial task update; only fields present in the body are applied.

    An explicit ``"dueDate": null`` clears the due date.
    """

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None

    class Config(CamelModel.Config):
        use_enum_values = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Title cannot be empty")
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be empty")
        return check_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value):
        return check_description(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, value):
        return parse_due_date(value)


class TaskRead(TaskBase):
    """Task as returned to its owner."""

    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime


class TaskDetail(CamelModel):
    task: TaskRead


class TaskList(CamelModel):
    tasks: list[TaskRead]
    count: int


class TaskStats(CamelModel):
    """Per-status task counts for the current user."""

    total: int = 0
    pending: int = 0
    in_progress: int = Field(0, alias="in-progress")
    completed: int = 0


class TaskStatsData(CamelModel):
    stats: TaskStats
