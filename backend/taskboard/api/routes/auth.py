"""Authentication routes.

Endpoints:
    - POST /auth/register: Create an account (access token + refresh cookie)
    - POST /auth/login: Login by email or username (access token + refresh cookie)
    - POST /auth/logout: Forget the stored refresh token and clear the cookie
    - POST /auth/refresh: Exchange the refresh cookie for a new access token
    - GET /auth/profile: Current user's profile
    - PUT /auth/profile: Partial update of username / full name
"""

from core.auth_helper import (
    REFRESH_COOKIE_NAME,
    CurrentUser,
    authenticate_user,
    clear_refresh_cookie,
    get_password_hash,
    set_refresh_cookie,
    start_session,
)
from core.errors import UnauthorizedError
from core.logging import logger
from core.tokens import issue_access_token, verify_refresh_token
from db.session import get_db
from fastapi import APIRouter, Depends, Request, Response, status
from schemas.auth import (
    AccessToken,
    User,
    UserCreate,
    UserLogin,
    UserProfile,
    UserSession,
    UserUpdate,
)
from schemas.common import ApiResponse
from services.users import create_user, get_user_by_id, set_refresh_token_jti, update_profile
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=ApiResponse[UserSession],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: UserCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create a user and start a session for it.

    Args:
        payload: Registration data.
        response: Response used to set the refresh token cookie.
        db: Async database session (dependency-injected).

    Returns:
        ApiResponse[UserSession]: Public user fields and the access token.

    Raises:
        ConflictError: If the username or email is already registered.
    """
    user = await create_user(
        db,
        username=payload.username,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        full_name=payload.full_name,
    )
    session = await start_session(db, user)
    set_refresh_cookie(response, session.refresh_token)

    return ApiResponse(
        message="User registered successfully",
        data=UserSession(user=User.model_validate(user), access_token=session.access_token),
    )


@router.post("/login", response_model=ApiResponse[UserSession])
async def login(
    payload: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate by email or username and issue fresh tokens.

    A successful login replaces the stored refresh token, so refresh
    cookies from earlier logins stop working.

    Raises:
        UnauthorizedError: With the same message for unknown users and
            wrong passwords.
    """
    user = await authenticate_user(db, payload.email_or_username, payload.password)
    session = await start_session(db, user)
    set_refresh_cookie(response, session.refresh_token)
    logger.info("User {} logged in", user.username)

    return ApiResponse(
        message="Login successful",
        data=UserSession(user=User.model_validate(user), access_token=session.access_token),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    current_user: CurrentUser,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Clear the stored refresh token and the refresh cookie.

    Calling it again with a still-valid access token is harmless.
    """
    await set_refresh_token_jti(db, current_user, None)
    clear_refresh_cookie(response)
    logger.info("User {} logged out", current_user.username)
    return ApiResponse(message="Logout successful")


@router.post("/refresh", response_model=ApiResponse[AccessToken])
async def refresh_access_token(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Exchange the refresh cookie for a new access token.

    The refresh token must verify and must also be the one currently stored
    for its user, so logout or a newer login revokes it immediately. The
    refresh token itself is not rotated here.

    Raises:
        UnauthorizedError: If the cookie is missing, invalid or superseded.
    """
    # NOTE: only the HttpOnly cookie is accepted, never a body field.
    refresh_token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not refresh_token:
        raise UnauthorizedError("No refresh token provided")

    claims = verify_refresh_token(refresh_token)
    if claims is None:
        raise UnauthorizedError("Invalid or expired refresh token")

    user = await get_user_by_id(db, claims.user_id)
    if user is None or user.refresh_token_jti != claims.jti:
        logger.warning("Refresh token no longer current for user_id={}", claims.user_id)
        raise UnauthorizedError("Invalid refresh token")

    logger.debug("Refresh token used for user_id={}", user.id)
    return ApiResponse(
        message="Token refreshed successfully",
        data=AccessToken(access_token=issue_access_token(user.id)),
    )


@router.get("/profile", response_model=ApiResponse[UserProfile])
async def get_profile(current_user: CurrentUser):
    """Return the current authenticated user's information."""

    return ApiResponse(data=UserProfile(user=User.model_validate(current_user)))


@router.put("/profile", response_model=ApiResponse[UserProfile])
async def put_profile(
    payload: UserUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Update the provided profile fields of the current user.

    Raises:
        ConflictError: If the new username belongs to another user.
    """
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("username") is None:
        changes.pop("username", None)

    user = await update_profile(db, current_user, changes)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserProfile(user=User.model_validate(user)),
    )
