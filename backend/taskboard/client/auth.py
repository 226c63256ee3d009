"""Client session manager: register, login, logout and profile calls.

Wraps :class:`ApiClient` and keeps the :class:`SessionContext` in step
with the server: tokens and the user snapshot are stored after register
and login, replaced after profile edits and dropped on logout.
"""

import httpx
from client.api import ApiClient, ApiError
from client.interceptor import SessionExpiredError
from client.session import SessionContext
from core.logging import logger


class SessionManager:
    def __init__(self, api: ApiClient, session: SessionContext):
        self.api = api
        self.session = session

    @property
    def user(self) -> dict | None:
        return self.session.user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    async def register(
        self, username: str, email: str, password: str, full_name: str | None = None
    ) -> dict:
        """Create an account and store the resulting session.

        Returns:
            dict: The public user fields.

        Raises:
            ApiError: On validation failures or duplicate username/email.
        """
        payload = {"username": username, "email": email, "password": password}
        if full_name is not None:
            payload["fullName"] = full_name
        body = await self.api.post("/api/auth/register", json=payload)
        return self._start(body["data"])

    async def login(self, email_or_username: str, password: str) -> dict:
        """Log in and store the resulting session.

        Raises:
            ApiError: 401 "Invalid credentials" on a bad login.
        """
        body = await self.api.post(
            "/api/auth/login",
            json={"emailOrUsername": email_or_username, "password": password},
        )
        return self._start(body["data"])

    async def logout(self) -> None:
        """Log out on the server, then always drop the local session."""

        try:
            await self.api.post("/api/auth/logout")
        except (ApiError, SessionExpiredError, httpx.HTTPError) as exc:
            logger.warning("Server logout failed, clearing local session anyway: {}", exc)
        finally:
            self.session.clear()
        logger.info("Logged out")

    async def fetch_profile(self) -> dict:
        body = await self.api.get("/api/auth/profile")
        user = body["data"]["user"]
        self.session.update_user(user)
        return user

    async def update_profile(
        self, *, username: str | None = None, full_name: str | None = None
    ) -> dict:
        """Send only the provided fields and store the updated user."""

        payload = {}
        if username is not None:
            payload["username"] = username
        if full_name is not None:
            payload["fullName"] = full_name
        body = await self.api.put("/api/auth/profile", json=payload)
        user = body["data"]["user"]
        self.session.update_user(user)
        return user

    def _start(self, data: dict) -> dict:
        self.session.set(data["user"], data["accessToken"])
        self.api.coordinator.reset()
        logger.info("Session started for user={}", data["user"]["username"])
        return data["user"]
