"""Tests for the owner-scoped /api/tasks endpoints."""

import pytest
from conftest import bearer


@pytest.fixture
def alice(register_user) -> dict[str, str]:
    access_token, _, _ = register_user("alice")
    return bearer(access_token)


@pytest.fixture
def bob(register_user) -> dict[str, str]:
    access_token, _, _ = register_user("bob")
    return bearer(access_token)


def create(client, headers, **fields) -> dict:
    response = client.post("/api/tasks", headers=headers, json=fields)
    assert response.status_code == 201, response.text
    return response.json()["data"]["task"]


def listing(client, headers, **params) -> list[dict]:
    response = client.get("/api/tasks", headers=headers, params=params)
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["count"] == len(data["tasks"])
    return data["tasks"]


def stats(client, headers) -> dict:
    return client.get("/api/tasks/stats", headers=headers).json()["data"]["stats"]


class TestCreateAndFetch:
    def test_defaults_and_stats(self, client, alice) -> None:
        before = stats(client, alice)

        task = create(client, alice, title="Buy milk")

        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        assert task["description"] == ""
        assert task["dueDate"] is None
        after = stats(client, alice)
        assert after["pending"] == before["pending"] + 1
        assert after["total"] == before["total"] + 1

    def test_round_trip_preserves_fields(self, client, alice) -> None:
        created = create(
            client,
            alice,
            title="Write report",
            description="Quarterly numbers",
            status="in-progress",
            priority="high",
            dueDate="2030-05-17T15:30:00Z",
        )

        response = client.get(f"/api/tasks/{created['id']}", headers=alice)

        assert response.status_code == 200
        task = response.json()["data"]["task"]
        assert task["title"] == "Write report"
        assert task["description"] == "Quarterly numbers"
        assert task["status"] == "in-progress"
        assert task["priority"] == "high"
        assert task["dueDate"] == "2030-05-17"
        assert task["userId"] == created["userId"]
        assert task["createdAt"] and task["updatedAt"]

    def test_plain_date_is_accepted(self, client, alice) -> None:
        task = create(client, alice, title="Dentist", dueDate="2030-01-02")

        assert task["dueDate"] == "2030-01-02"

    def test_title_is_trimmed_and_required(self, client, alice) -> None:
        assert create(client, alice, title="  Spaced  ")["title"] == "Spaced"

        response = client.post("/api/tasks", headers=alice, json={"title": "   "})

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "title", "message": "Title is required"}]

    def test_length_limits(self, client, alice) -> None:
        too_long_title = client.post("/api/tasks", headers=alice, json={"title": "x" * 101})
        too_long_description = client.post(
            "/api/tasks", headers=alice, json={"title": "ok", "description": "y" * 501}
        )

        assert too_long_title.status_code == 400
        assert too_long_description.status_code == 400
        assert too_long_description.json()["errors"][0]["message"] == (
            "Description cannot exceed 500 characters"
        )

    def test_invalid_enum_and_date(self, client, alice) -> None:
        response = client.post(
            "/api/tasks",
            headers=alice,
            json={"title": "t", "status": "done", "priority": "urgent", "dueDate": "someday"},
        )

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert fields == {"status", "priority", "dueDate"}

    def test_requires_authentication(self, client) -> None:
        assert client.get("/api/tasks").status_code == 401
        assert client.post("/api/tasks", json={"title": "x"}).status_code == 401
        assert client.get("/api/tasks/stats").status_code == 401


class TestListing:
    def test_status_and_priority_filters_combine(self, client, alice, bob) -> None:
        match = create(client, alice, title="A", status="pending", priority="high")
        create(client, alice, title="B", status="pending", priority="low")
        create(client, alice, title="C", status="completed", priority="high")
        create(client, bob, title="Bob's", status="pending", priority="high")

        tasks = listing(client, alice, status="pending", priority="high")

        assert [task["id"] for task in tasks] == [match["id"]]

    def test_other_users_tasks_never_appear(self, client, alice, bob) -> None:
        create(client, alice, title="mine")
        create(client, bob, title="theirs")

        titles = [task["title"] for task in listing(client, alice)]

        assert titles == ["mine"]

    def test_search_is_case_insensitive_over_title_and_description(self, client, alice) -> None:
        create(client, alice, title="Buy MILK")
        create(client, alice, title="Groceries", description="eggs and milk")
        create(client, alice, title="Call mom")

        titles = {task["title"] for task in listing(client, alice, search="milk")}

        assert titles == {"Buy MILK", "Groceries"}

    def test_search_treats_wildcards_literally(self, client, alice) -> None:
        create(client, alice, title="100% done")
        create(client, alice, title="1000 things")

        titles = [task["title"] for task in listing(client, alice, search="0%")]

        assert titles == ["100% done"]

    def test_default_order_is_newest_first(self, client, alice) -> None:
        first = create(client, alice, title="first")
        second = create(client, alice, title="second")

        ids = [task["id"] for task in listing(client, alice)]

        assert ids == [second["id"], first["id"]]

    def test_sort_by_title_ascending(self, client, alice) -> None:
        for title in ("banana", "apple", "cherry"):
            create(client, alice, title=title)

        titles = [task["title"] for task in listing(client, alice, sortBy="title", order="asc")]

        assert titles == ["apple", "banana", "cherry"]

    def test_sort_by_priority_uses_rank(self, client, alice) -> None:
        for priority in ("medium", "high", "low"):
            create(client, alice, title=priority, priority=priority)

        ranked = [task["priority"] for task in listing(client, alice, sortBy="priority", order="desc")]

        assert ranked == ["high", "medium", "low"]

    def test_invalid_query_values_are_rejected(self, client, alice) -> None:
        for params in ({"status": "done"}, {"sortBy": "owner"}, {"order": "up"}):
            response = client.get("/api/tasks", headers=alice, params=params)
            assert response.status_code == 400, params


class TestUpdateAndDelete:
    def test_partial_update(self, client, alice) -> None:
        task = create(client, alice, title="Draft", description="keep me", dueDate="2030-01-01")

        response = client.put(
            f"/api/tasks/{task['id']}", headers=alice, json={"status": "completed"}
        )

        assert response.status_code == 200
        updated = response.json()["data"]["task"]
        assert updated["status"] == "completed"
        assert updated["title"] == "Draft"
        assert updated["description"] == "keep me"
        assert updated["dueDate"] == "2030-01-01"

    def test_null_due_date_clears_it(self, client, alice) -> None:
        task = create(client, alice, title="Draft", dueDate="2030-01-01")

        response = client.put(f"/api/tasks/{task['id']}", headers=alice, json={"dueDate": None})

        assert response.json()["data"]["task"]["dueDate"] is None

    def test_empty_title_is_rejected(self, client, alice) -> None:
        task = create(client, alice, title="Draft")

        response = client.put(f"/api/tasks/{task['id']}", headers=alice, json={"title": ""})

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Title cannot be empty"

    def test_delete_removes_task_and_updates_stats(self, client, alice) -> None:
        task = create(client, alice, title="Temp", status="completed")
        assert stats(client, alice)["completed"] == 1

        response = client.delete(f"/api/tasks/{task['id']}", headers=alice)

        assert response.status_code == 200
        assert response.json()["message"] == "Task deleted successfully"
        assert client.get(f"/api/tasks/{task['id']}", headers=alice).status_code == 404
        assert stats(client, alice) == {"total": 0, "pending": 0, "in-progress": 0, "completed": 0}

    def test_foreign_task_looks_missing(self, client, alice, bob) -> None:
        task = create(client, bob, title="Bob's secret")
        path = f"/api/tasks/{task['id']}"

        responses = [
            client.get(path, headers=alice),
            client.put(path, headers=alice, json={"title": "hijacked"}),
            client.delete(path, headers=alice),
        ]

        for response in responses:
            assert response.status_code == 404
            assert response.json() == {"success": False, "message": "Task not found"}
        assert client.get(path, headers=bob).json()["data"]["task"]["title"] == "Bob's secret"

    def test_unknown_id_is_not_found(self, client, alice) -> None:
        assert client.get("/api/tasks/9999", headers=alice).status_code == 404

    @pytest.mark.parametrize(
        "task_id", ["99999999999999999999", "2147483648", "0", "-1", "abc", "1.5"]
    )
    def test_unresolvable_ids_are_not_found(self, client, alice, task_id) -> None:
        create(client, alice, title="Existing")
        path = f"/api/tasks/{task_id}"

        responses = [
            client.get(path, headers=alice),
            client.put(path, headers=alice, json={"title": "renamed"}),
            client.delete(path, headers=alice),
        ]

        for response in responses:
            assert response.status_code == 404, response.text
            assert response.json() == {"success": False, "message": "Task not found"}
        assert [task["title"] for task in listing(client, alice)] == ["Existing"]

    def test_leading_zeros_resolve_to_the_same_task(self, client, alice) -> None:
        task = create(client, alice, title="Padded")

        response = client.get(f"/api/tasks/00{task['id']}", headers=alice)

        assert response.status_code == 200
        assert response.json()["data"]["task"]["id"] == task["id"]


class TestStats:
    def test_counts_per_status(self, client, alice, bob) -> None:
        create(client, alice, title="a")
        create(client, alice, title="b", status="in-progress")
        create(client, alice, title="c", status="in-progress")
        create(client, alice, title="d", status="completed")
        create(client, bob, title="e", status="completed")

        assert stats(client, alice) == {
            "total": 4,
            "pending": 1,
            "in-progress": 2,
            "completed": 1,
        }


def test_every_task_operation_is_documented(client) -> None:
    paths = client.app.openapi()["paths"]
    operations = [
        (method, path)
        for path, methods in paths.items()
        if path.startswith("/api/tasks")
        for method, operation in methods.items()
        if not operation.get("description")
    ]

    assert operations == []
