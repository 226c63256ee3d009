"""Coordination of access-token refreshes for concurrent requests.

Many requests can fail with 401 at about the same moment when an access
token expires. ``RefreshCoordinator`` makes sure only the first of them
calls the refresh endpoint; the others wait in an ordered queue and are
released, in the order they arrived, with the new token (or with
``SessionExpiredError`` when the refresh fails).

States::

    IDLE --401--> REFRESHING --ok--> IDLE
                      |
                      +--error--> FAILED --reset()--> IDLE
"""

import asyncio
import enum
from collections import deque
from typing import Awaitable, Callable

from core.logging import logger


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    FAILED = "failed"


class SessionExpiredError(Exception):
    """The refresh token was rejected; the user has to log in again."""

    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message)
        self.message = message


class RefreshCoordinator:
    """Single-flight refresh with an ordered queue of waiting requests.

    The refresh call runs in a task owned by the coordinator. A caller that
    is cancelled while waiting only gives up its own place in the queue; the
    refresh and every other waiter carry on.

    Args:
        refresh: Coroutine function calling the refresh endpoint and
            returning the new access token. It must not go through the
            interceptor itself.
        on_token: Called with the new token before any waiter is released.
        on_failure: Called once after a failed refresh, after every waiter
            has been rejected.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[str]],
        on_token: Callable[[str], None] | None = None,
        on_failure: Callable[[], None] | None = None,
    ):
        self._refresh = refresh
        self._on_token = on_token
        self._on_failure = on_failure
        self._pending: deque[asyncio.Future] = deque()
        self._refresh_task: asyncio.Task | None = None
        self.state = RefreshState.IDLE

    @property
    def pending_count(self) -> int:
        return sum(1 for future in self._pending if not future.done())

    async def acquire_token(self) -> str:
        """Return a fresh access token, refreshing at most once at a time.

        Raises:
            SessionExpiredError: If the refresh fails, or already failed and
                the coordinator has not been reset since.
        """
        if self.state is RefreshState.FAILED:
            raise SessionExpiredError()

        future = asyncio.get_running_loop().create_future()
        self._pending.append(future)

        if self.state is RefreshState.IDLE:
            self.state = RefreshState.REFRESHING
            logger.debug("Access token rejected, refreshing")
            self._refresh_task = asyncio.create_task(self._run_refresh())
        else:
            logger.debug("Refresh in flight, queued request ({} waiting)", self.pending_count)

        return await future

    def reset(self) -> None:
        """Leave the FAILED state, typically after a new login."""

        if self.state is RefreshState.FAILED:
            self.state = RefreshState.IDLE

    async def _run_refresh(self) -> None:
        try:
            token = await self._refresh()
        except asyncio.CancelledError:
            # Cancellation is not a rejected refresh token: no logout.
            logger.debug("Token refresh cancelled")
            self.state = RefreshState.IDLE
            self._release(lambda future: future.cancel())
            raise
        except Exception as exc:
            logger.warning("Token refresh failed: {}", exc)
            self._fail(exc)
            return
        finally:
            self._refresh_task = None

        self.state = RefreshState.IDLE
        if self._on_token is not None:
            self._on_token(token)
        released = self._release(lambda future: future.set_result(token))
        logger.debug("Token refreshed, replaying {} queued request(s)", released)

    def _release(self, settle: Callable[[asyncio.Future], object]) -> int:
        released = 0
        while self._pending:
            future = self._pending.popleft()
            if not future.done():
                settle(future)
                released += 1
        return released

    def _fail(self, cause: Exception) -> None:
        self.state = RefreshState.FAILED

        def reject(future: asyncio.Future) -> None:
            error = SessionExpiredError()
            error.__cause__ = cause
            future.set_exception(error)

        self._release(reject)
        if self._on_failure is not None:
            self._on_failure()
