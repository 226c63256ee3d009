"""Credential store: persistence operations on user accounts."""

from core.errors import ConflictError
from core.logging import logger
from models.auth import User
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def find_user_by_login(db: AsyncSession, email_or_username: str) -> User | None:
    """Load a user whose email (case-insensitive) or username matches.

    Args:
        db: Async database session.
        email_or_username: Either login identifier as typed by the user.

    Returns:
        User | None: The matching user, if any.
    """
    result = await db.execute(
        select(User).filter(
            or_(
                User.email == email_or_username.lower(),
                User.username == email_or_username,
            )
        )
    )
    return result.scalars().first()


async def ensure_available(db: AsyncSession, username: str, email: str) -> None:
    """Raise ConflictError if the username or email is already registered."""

    result = await db.execute(
        select(User).filter(or_(User.email == email, User.username == username))
    )
    existing = result.scalars().first()
    if existing is None:
        return
    if existing.email == email:
        raise ConflictError("Email already registered")
    raise ConflictError("Username already taken")


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    hashed_password: str,
    full_name: str | None = None,
) -> User:
    """Insert a new user after checking username/email availability.

    The unique constraints still guard against two registrations racing
    past the availability check; the loser gets the same ConflictError.
    """
    await ensure_available(db, username, email)

    user = User(
        username=username,
        email=email,
        hashed_password=hashed_password,
        full_name=full_name,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Concurrent registration for username={}", username)
        raise ConflictError("Username or email already registered")
    logger.info("Created user id={} username={}", user.id, user.username)
    return user


async def set_refresh_token_jti(db: AsyncSession, user: User, jti: str | None) -> None:
    """Store (or clear, with None) the single accepted refresh token JTI."""

    user.refresh_token_jti = jti
    await db.commit()


async def username_taken_by_other(db: AsyncSession, username: str, user_id: int) -> bool:
    result = await db.execute(
        select(func.count())
        .select_from(User)
        .filter(User.username == username, User.id != user_id)
    )
    return result.scalar_one() > 0


async def update_profile(db: AsyncSession, user: User, changes: dict) -> User:
    """Apply a partial profile update.

    Args:
        db: Async database session.
        user: The user being edited.
        changes: Mapping of attribute name to new value; only these change.

    Returns:
        User: The updated user.

    Raises:
        ConflictError: If the requested username belongs to another user.
    """
    username = changes.get("username")
    if username is not None and await username_taken_by_other(db, username, user.id):
        raise ConflictError("Username already taken")

    for field, value in changes.items():
        setattr(user, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username already taken")
    logger.info("Updated profile user_id={} fields={}", user.id, sorted(changes))
    return user
