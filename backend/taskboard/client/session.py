"""Client-side session state.

``SessionStorage`` persists the access token and a snapshot of the current
user to a JSON file, playing the role browser local storage plays for a web
frontend. ``SessionContext`` is the in-memory holder handed to the API
client and session manager; it is created explicitly, loaded from storage
at startup and cleared on logout.
"""

import json
from pathlib import Path

from core.logging import logger


class SessionStorage:
    """JSON file holding ``{"accessToken": ..., "user": {...}}``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable session file {}", self.path)
            return {}

    def save(self, access_token: str | None, user: dict | None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"accessToken": access_token, "user": user}), encoding="utf-8"
        )

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionContext:
    """Holds the access token and current-user snapshot for one client.

    Args:
        storage: Optional persistence; without it the session lives only in
            memory.
    """

    def __init__(self, storage: SessionStorage | None = None):
        self.storage = storage
        self.access_token: str | None = None
        self.user: dict | None = None

    @classmethod
    def load(cls, storage: SessionStorage) -> "SessionContext":
        """Restore a session persisted by a previous run.

        A session is only restored when both the token and the user snapshot
        are present.
        """
        context = cls(storage)
        saved = storage.load()
        if saved.get("accessToken") and saved.get("user"):
            context.access_token = saved["accessToken"]
            context.user = saved["user"]
            logger.debug("Restored session for user={}", context.user.get("username"))
        return context

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def set(self, user: dict, access_token: str) -> None:
        self.user = user
        self.access_token = access_token
        self._persist()

    def set_access_token(self, access_token: str) -> None:
        self.access_token = access_token
        self._persist()

    def update_user(self, user: dict) -> None:
        self.user = user
        self._persist()

    def clear(self) -> None:
        self.access_token = None
        self.user = None
        if self.storage is not None:
            self.storage.clear()

    def _persist(self) -> None:
        if self.storage is not None:
            self.storage.save(self.access_token, self.user)
