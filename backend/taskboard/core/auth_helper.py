"""Authentication helpers shared by the auth and task routes.

Covers password hashing, credential checks, session issuance (access token
plus refresh cookie) and the ``get_current_user`` dependency that guards
every authenticated endpoint.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated

from config.config import settings
from core.errors import UnauthorizedError
from core.logging import logger
from core.tokens import issue_access_token, issue_refresh_token, verify_access_token
from db.session import get_db
from fastapi import Depends, Response
from fastapi.security import OAuth2PasswordBearer
from models.auth import User as UserModel
from pwdlib import PasswordHash
from services.users import find_user_by_login, get_user_by_id, set_refresh_token_jti
from sqlalchemy.ext.asyncio import AsyncSession

REFRESH_COOKIE_NAME = "refreshToken"
INVALID_CREDENTIALS = "Invalid credentials"

password_hash = PasswordHash.recommended()

# NOTE: auto_error is off so a missing header yields our own 401 envelope.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class IssuedSession:
    access_token: str
    refresh_token: str


def verify_password(plain_password, hashed_password):
    """Verify a plain password against a stored hash.

    Args:
        plain_password: The clear-text password provided by the user.
        hashed_password: The stored password hash to verify against.

    Returns:
        bool: True if the password matches, False otherwise.
    """
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password):
    """Hash a plain password using the recommended algorithm."""
    return password_hash.hash(password)


async def authenticate_user(
    db: AsyncSession, email_or_username: str, password: str
) -> UserModel:
    """Authenticate a user by email or username and password.

    Unknown users and wrong passwords raise the same error so the response
    does not reveal which accounts exist.

    Raises:
        UnauthorizedError: If the credentials do not match a user.
    """
    user = await find_user_by_login(db, email_or_username)
    if not user:
        logger.debug("Authentication failed: user not found login={}", email_or_username)
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        logger.warning("Authentication failed: invalid password user_id={}", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user


async def start_session(db: AsyncSession, user: UserModel) -> IssuedSession:
    """Issue both tokens and make the new refresh token the only valid one.

    Overwriting the stored JTI invalidates refresh tokens from any earlier
    login of the same user.
    """
    access_token = issue_access_token(user.id)
    refresh = issue_refresh_token(user.id)
    await set_refresh_token_jti(db, user, refresh.jti)
    logger.info("Started session user_id={} jti={}..", user.id, refresh.jti[:8])
    return IssuedSession(access_token=access_token, refresh_token=refresh.token)


def _cookie_flags() -> dict:
    if settings.is_production:
        return {"httponly": True, "secure": True, "samesite": "none"}
    return {"httponly": True, "secure": False, "samesite": "lax"}


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Attach the refresh token as an HttpOnly cookie."""

    max_age = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=int(max_age.total_seconds()),
        path="/",
        **_cookie_flags(),
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(REFRESH_COOKIE_NAME, path="/", **_cookie_flags())


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """
    Validate the bearer access token and return the current user.

    Refresh tokens are rejected here: they are signed with a different
    secret and carry token_type="refresh".
    """
    if not token:
        raise UnauthorizedError("Not authorized, no token")

    user_id = verify_access_token(token)
    if user_id is None:
        logger.warning("Invalid access token provided")
        raise UnauthorizedError("Not authorized, token failed")

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user


CurrentUser = Annotated[UserModel, Depends(get_current_user)]
