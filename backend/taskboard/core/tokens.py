"""
Signing and verification of access and refresh tokens.

TOKEN FLOW:

1. REGISTER / LOGIN:
   - Server creates:
     * Access Token (JWT, minutes) - returned in the response body
     * Refresh Token (JWT, days) - set as an HttpOnly cookie; its JTI is
       stored on the user record, overwriting any previous one
2. API REQUESTS:
   - Client sends the access token in the Authorization header
3. REFRESH:
   - Client posts to /auth/refresh with the cookie
   - Server checks signature, expiry, token type and that the JTI matches
     the one stored for the user, then issues a new access token only
4. LOGOUT:
   - The stored JTI is cleared, so the cookie stops working immediately

Access and refresh tokens are signed with different secrets. A leaked
refresh secret cannot be used to forge access tokens and vice versa.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from config.config import settings
from core.logging import logger
from jwt.exceptions import InvalidTokenError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class RefreshToken:
    """A freshly signed refresh token and the data needed to track it."""

    token: str
    jti: str
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    """Verified claims of a presented refresh token."""

    user_id: int
    jti: str


def _encode(payload: dict, secret: str) -> str:
    return jwt.encode(payload, secret, algorithm=settings.ALGORITHM)


def _decode(token: str, secret: str, token_type: str) -> dict | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except InvalidTokenError as exc:
        logger.debug("Rejected {} token: {}", token_type, exc)
        return None
    if payload.get("token_type") != token_type:
        logger.debug("Rejected token with type={}, expected {}", payload.get("token_type"), token_type)
        return None
    return payload


def _subject(payload: dict) -> int | None:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


def issue_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived access token for API requests.

    Args:
        user_id: ID of the user the token authorizes.
        expires_delta: Optional timedelta to override the configured lifetime.

    Returns:
        str: Encoded JWT access token.
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "token_type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_delta,
    }
    return _encode(payload, settings.ACCESS_TOKEN_SECRET)


def issue_refresh_token(user_id: int, expires_delta: timedelta | None = None) -> RefreshToken:
    """Create a long-lived refresh token with a unique JTI.

    Args:
        user_id: ID of the user the token belongs to.
        expires_delta: Optional timedelta to override the configured lifetime.

    Returns:
        RefreshToken: the encoded token, its JTI and its expiry.
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    expires_at = now + expires_delta

    # NOTE: the JTI keeps two tokens minted in the same second distinct.
    jti = secrets.token_urlsafe(32)

    payload = {
        "sub": str(user_id),
        "token_type": REFRESH_TOKEN_TYPE,
        "jti": jti,
        "iat": now,
        "exp": expires_at,
    }
    return RefreshToken(
        token=_encode(payload, settings.REFRESH_TOKEN_SECRET),
        jti=jti,
        expires_at=expires_at,
    )


def verify_access_token(token: str) -> int | None:
    """Return the user id of a valid access token, or None."""

    payload = _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE)
    if payload is None:
        return None
    return _subject(payload)


def verify_refresh_token(token: str) -> RefreshClaims | None:
    """Verify signature, expiry and type of a refresh token.

    Expired, malformed and wrongly signed tokens yield None rather than
    raising, so callers can map them to a 401.

    Args:
        token: The encoded refresh token provided by the client.

    Returns:
        RefreshClaims | None: the user id and JTI when the token is valid.
    """
    payload = _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE)
    if payload is None:
        return None
    user_id = _subject(payload)
    jti = payload.get("jti")
    if user_id is None or not jti:
        return None
    return RefreshClaims(user_id=user_id, jti=jti)
