"""Pydantic schemas for authentication endpoints.

Includes registration/login/profile request bodies and the public user
representation. Password hashes never appear in any response schema.
"""

import re
from datetime import datetime

from pydantic import EmailStr, field_validator
from schemas.common import CamelModel

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def check_username(value: str) -> str:
    value = value.strip()
    if not 3 <= len(value) <= 30:
        raise ValueError("Username must be between 3 and 30 characters")
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return value


def check_full_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) > 100:
        raise ValueError("Full name cannot exceed 100 characters")
    return value


class UserCreate(CamelModel):
    """Request body for creating a new user."""

    username: str
    email: EmailStr
    password: str
    full_name: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return check_username(value)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        return check_full_name(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class UserLogin(CamelModel):
    """Request body for logging in with either an email or a username."""

    email_or_username: str
    password: str

    @field_validator("email_or_username")
    @classmethod
    def check_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Email or username is required")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class UserUpdate(CamelModel):
    """Partial profile update; omitted fields are left untouched."""

    username: str | None = None
    full_name: str | None = None

    @field_validator("username")
    @classmethod
    def check_optional_username(cls, value: str | None) -> str | None:
        return None if value is None else check_username(value)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        return check_full_name(value)


class User(CamelModel):
    """Public user representation returned by the API."""

    id: int
    username: str
    email: str
    full_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserSession(CamelModel):
    """Payload returned by register and login."""

    user: User
    access_token: str


class AccessToken(CamelModel):
    """Payload returned by the refresh endpoint.

    The refresh token itself stays in its HttpOnly cookie and is never
    returned to JavaScript.
    """

    access_token: str


class UserProfile(CamelModel):
    user: User
