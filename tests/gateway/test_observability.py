"""可观测性测试 -- X-Request-ID 与任务 trace 提取"""

from httpx import AsyncClient
from taskforce.gateway.middleware.trace_mw import extract_task_id

TASK_ID = "01JABCDEFGHJKMNPQRSTVWXYZ0"


class TestObservability:
    async def test_request_id_in_response_header(self, client: AsyncClient):
        resp = await client.get("/health")
        assert "x-request-id" in resp.headers
        # ULID 格式：26 字符
        assert len(resp.headers["x-request-id"]) == 26

    async def test_incoming_request_id_is_reused(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "upstream-123"})
        assert resp.headers["x-request-id"] == "upstream-123"

    async def test_request_ids_are_unique(self, client: AsyncClient):
        ids = {(await client.get("/health")).headers["x-request-id"] for _ in range(3)}
        assert len(ids) == 3


def test_extract_task_id():
    assert extract_task_id(f"/api/tasks/{TASK_ID}") == TASK_ID
    assert extract_task_id(f"/api/tasks/{TASK_ID}/transition") == TASK_ID
    assert extract_task_id(f"/api/stream/task/{TASK_ID}") == TASK_ID
    assert extract_task_id("/api/tasks/summary") is None
    assert extract_task_id("/health") is None
