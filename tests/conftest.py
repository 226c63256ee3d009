"""Shared fixtures: isolated SQLite database, app client and user helpers."""

import asyncio
import os
import tempfile
from pathlib import Path

# NOTE: settings and the engine are created at import time, so the test
# environment has to be in place before any application module is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="taskboard-tests-"))
os.environ["DATABASE_URL_ASYNC"] = f"sqlite+aiosqlite:///{_DB_DIR / 'test.db'}"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret-0123456789abcdef"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from db.session import reset_database as reset_schema  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from main import app  # noqa: E402

DEFAULT_PASSWORD = "secret1"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """Start every test from empty tables."""
    asyncio.run(reset_schema())


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client: TestClient):
    """Register a user and return ``(access_token, refresh_token, user)``.

    The refresh token is read from the Set-Cookie header and the client's
    cookie jar is emptied, so each test decides which cookie it presents.
    """

    def _register(username: str, email: str | None = None, password: str = DEFAULT_PASSWORD, **extra):
        body = {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
            **extra,
        }
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        refresh_token = response.cookies.get("refreshToken")
        client.cookies.clear()
        data = response.json()["data"]
        return data["accessToken"], refresh_token, data["user"]

    return _register


def refresh_with(client: TestClient, refresh_token: str):
    """POST /api/auth/refresh presenting exactly ``refresh_token`` as cookie."""
    client.cookies.clear()
    return client.post(
        "/api/auth/refresh", headers={"Cookie": f"refreshToken={refresh_token}"}
    )


def login(client: TestClient, identifier: str, password: str = DEFAULT_PASSWORD):
    response = client.post(
        "/api/auth/login", json={"emailOrUsername": identifier, "password": password}
    )
    return response
