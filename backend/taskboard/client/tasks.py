"""Task endpoints as seen from the client."""

from client.api import ApiClient
from pydantic.alias_generators import to_camel


def _camel(fields: dict) -> dict:
    return {to_camel(key): value for key, value in fields.items()}


class TaskService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def list(
        self,
        *,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> list[dict]:
        params = {
            "status": status,
            "priority": priority,
            "search": search,
            "sortBy": sort_by,
            "order": order,
        }
        body = await self.api.get(
            "/api/tasks", params={k: v for k, v in params.items() if v}
        )
        return body["data"]["tasks"]

    async def get(self, task_id: int) -> dict:
        body = await self.api.get(f"/api/tasks/{task_id}")
        return body["data"]["task"]

    async def create(self, title: str, **fields) -> dict:
        body = await self.api.post("/api/tasks", json={"title": title, **_camel(fields)})
        return body["data"]["task"]

    async def update(self, task_id: int, **changes) -> dict:
        body = await self.api.put(f"/api/tasks/{task_id}", json=_camel(changes))
        return body["data"]["task"]

    async def delete(self, task_id: int) -> None:
        await self.api.delete(f"/api/tasks/{task_id}")

    async def stats(self) -> dict:
        body = await self.api.get("/api/tasks/stats")
        return body["data"]["stats"]
