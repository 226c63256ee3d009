"""Authentication models: user accounts and their active refresh token.

Only the identifier (JTI) of the refresh token is stored. A user has at
most one active refresh token; issuing a new one overwrites the previous
JTI and logging out clears it.
"""

from datetime import datetime, timezone

from db.session import Base
from sqlalchemy import Column, DateTime, Integer, String


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Database model representing an application user.

    Attributes:
        id: Primary key.
        username: Unique login name.
        email: Unique, lower-cased email address.
        full_name: Optional display name.
        hashed_password: Password hash.
        refresh_token_jti: JTI of the only refresh token currently accepted.
        created_at: Account creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(100), nullable=True)
    hashed_password = Column(String, nullable=False)
    refresh_token_jti = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
