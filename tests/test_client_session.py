"""Tests for client session persistence and the session manager end to end."""

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from client.api import ApiClient, ApiError
from client.auth import SessionManager
from client.interceptor import RefreshState, SessionExpiredError
from client.session import SessionContext, SessionStorage
from client.tasks import TaskService
from core.tokens import issue_access_token
from db.session import engine
from main import app


class TestSessionContext:
    def test_set_persists_and_load_restores(self, tmp_path) -> None:
        storage = SessionStorage(tmp_path / "session.json")
        context = SessionContext(storage)

        context.set({"id": 1, "username": "alice"}, "token-1")
        restored = SessionContext.load(storage)

        assert restored.access_token == "token-1"
        assert restored.user == {"id": 1, "username": "alice"}
        assert restored.is_authenticated

    def test_refreshed_token_is_persisted(self, tmp_path) -> None:
        storage = SessionStorage(tmp_path / "session.json")
        context = SessionContext(storage)
        context.set({"id": 1, "username": "alice"}, "token-1")

        context.set_access_token("token-2")

        assert SessionContext.load(storage).access_token == "token-2"

    def test_partial_state_is_not_restored(self, tmp_path) -> None:
        storage = SessionStorage(tmp_path / "session.json")
        storage.save("token-only", None)

        restored = SessionContext.load(storage)

        assert not restored.is_authenticated
        assert restored.access_token is None

    def test_unreadable_file_yields_empty_session(self, tmp_path) -> None:
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")

        assert not SessionContext.load(SessionStorage(path)).is_authenticated

    def test_clear_removes_storage(self, tmp_path) -> None:
        storage = SessionStorage(tmp_path / "session.json")
        context = SessionContext(storage)
        context.set({"id": 1, "username": "alice"}, "token-1")

        context.clear()

        assert not storage.path.exists()
        assert context.user is None and context.access_token is None


@pytest_asyncio.fixture
async def manager(tmp_path):
    """SessionManager talking to the real app in-process."""
    session = SessionContext(SessionStorage(tmp_path / "session.json"))
    api = ApiClient(
        "http://testserver", session, transport=httpx.ASGITransport(app=app)
    )
    async with api:
        yield SessionManager(api, session)
    await engine.dispose()


class TestSessionManager:
    @pytest.mark.asyncio
    async def test_register_stores_session(self, manager) -> None:
        user = await manager.register("alice", "alice@x.com", "secret1", full_name="Alice")

        assert user["username"] == "alice"
        assert manager.is_authenticated
        assert manager.session.access_token
        assert SessionContext.load(manager.session.storage).user["username"] == "alice"

    @pytest.mark.asyncio
    async def test_bad_login_raises_without_session(self, manager) -> None:
        await manager.register("alice", "alice@x.com", "secret1")
        await manager.logout()

        with pytest.raises(ApiError) as excinfo:
            await manager.login("alice", "wrong")

        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Invalid credentials"
        assert not manager.is_authenticated

    @pytest.mark.asyncio
    async def test_expired_access_token_is_refreshed_transparently(self, manager) -> None:
        user = await manager.register("alice", "alice@x.com", "secret1")
        tasks = TaskService(manager.api)
        created = await tasks.create("Buy milk", priority="high", due_date="2030-02-03")

        expired = issue_access_token(user["id"], expires_delta=timedelta(seconds=-1))
        manager.session.set_access_token(expired)

        fetched = await tasks.get(created["id"])

        assert fetched["title"] == "Buy milk"
        assert fetched["dueDate"] == "2030-02-03"
        assert manager.session.access_token != expired
        assert (await tasks.stats())["pending"] == 1

    @pytest.mark.asyncio
    async def test_logout_clears_session_and_revokes_refresh(self, manager) -> None:
        await manager.register("alice", "alice@x.com", "secret1")

        await manager.logout()

        assert not manager.is_authenticated
        assert not manager.session.storage.path.exists()
        with pytest.raises(SessionExpiredError):
            await manager.fetch_profile()
        assert manager.api.coordinator.state is RefreshState.FAILED

    @pytest.mark.asyncio
    async def test_login_after_failed_refresh_recovers(self, manager) -> None:
        await manager.register("alice", "alice@x.com", "secret1")
        await manager.logout()
        with pytest.raises(SessionExpiredError):
            await manager.fetch_profile()

        await manager.login("alice@x.com", "secret1")

        assert manager.api.coordinator.state is RefreshState.IDLE
        assert (await manager.fetch_profile())["username"] == "alice"

    @pytest.mark.asyncio
    async def test_update_profile_refreshes_snapshot(self, manager) -> None:
        await manager.register("alice", "alice@x.com", "secret1")

        await manager.update_profile(full_name="Alice Liddell")

        assert manager.user["fullName"] == "Alice Liddell"
        assert manager.user["username"] == "alice"
        restored = SessionContext.load(manager.session.storage)
        assert restored.user["fullName"] == "Alice Liddell"

    @pytest.mark.asyncio
    async def test_task_filters_through_client(self, manager) -> None:
        await manager.register("alice", "alice@x.com", "secret1")
        tasks = TaskService(manager.api)
        await tasks.create("one", status="completed", priority="low")
        wanted = await tasks.create("two", status="pending", priority="high")

        found = await tasks.list(status="pending", priority="high")

        assert [task["id"] for task in found] == [wanted["id"]]
        updated = await tasks.update(wanted["id"], status="in-progress")
        assert updated["status"] == "in-progress"
        await tasks.delete(wanted["id"])
        assert [task["title"] for task in await tasks.list()] == ["one"]
