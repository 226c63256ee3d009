"""Async HTTP client for the Taskboard API.

``ApiClient`` attaches the current access token to every request and, on a
401, obtains a new one through :class:`RefreshCoordinator` and replays the
request once. Error responses raise :class:`ApiError` carrying the server's
message; they are not retried.
"""

from typing import Any, Callable

import httpx
from client.interceptor import RefreshCoordinator, SessionExpiredError
from client.session import SessionContext
from core.logging import logger

REFRESH_PATH = "/api/auth/refresh"

# Credentials are checked by these endpoints themselves; a 401 there is an
# answer, not an expired access token.
UNINTERCEPTED_PATHS = frozenset({REFRESH_PATH, "/api/auth/login", "/api/auth/register"})


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, errors: list | None = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class ApiClient:
    """Authenticated client bound to one :class:`SessionContext`.

    Args:
        base_url: Server origin, e.g. ``http://localhost:8000``.
        session: Holder of the access token; updated on refresh.
        transport: Optional httpx transport (ASGI app, mock) for tests.
        on_session_expired: Called after a failed refresh, once the session
            has been cleared, so a UI can switch to its logged-out state.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        on_session_expired: Callable[[], None] | None = None,
        timeout: float = 10.0,
    ):
        self.session = session
        self._on_session_expired = on_session_expired
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=httpx.Timeout(timeout),
        )
        self.coordinator = RefreshCoordinator(
            self._refresh_access_token,
            on_token=session.set_access_token,
            on_failure=self._handle_session_expired,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
    ) -> dict:
        """Send a request and return the decoded response envelope.

        Raises:
            ApiError: For any non-2xx final response.
            SessionExpiredError: If a needed token refresh failed.
        """
        sent_with = self.session.access_token
        response = await self._send(method, path, sent_with, json, params)

        if response.status_code == 401 and path not in UNINTERCEPTED_PATHS:
            current = self.session.access_token
            if current is not None and current != sent_with:
                # Another request already refreshed while this one was in flight.
                token = current
            else:
                token = await self.coordinator.acquire_token()
            logger.debug("Replaying {} {} with refreshed token", method, path)
            response = await self._send(method, path, token, json, params)

        return self._unwrap(response)

    async def get(self, path: str, **kwargs) -> dict:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> dict:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> dict:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> dict:
        return await self.request("DELETE", path, **kwargs)

    async def _send(self, method, path, token, json, params) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return await self._http.request(
            method, path, json=json, params=params, headers=headers
        )

    async def _refresh_access_token(self) -> str:
        # Sent directly, never through request(), so it cannot recurse.
        response = await self._http.post(REFRESH_PATH)
        body = self._unwrap(response)
        return body["data"]["accessToken"]

    def _handle_session_expired(self) -> None:
        logger.info("Session expired, clearing local session")
        self.session.clear()
        if self._on_session_expired is not None:
            self._on_session_expired()

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_success:
            return body
        raise ApiError(
            response.status_code,
            body.get("message") or response.reason_phrase,
            body.get("errors"),
        )


__all__ = ["ApiClient", "ApiError", "SessionExpiredError", "REFRESH_PATH"]
