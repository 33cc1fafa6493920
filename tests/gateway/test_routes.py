"""HTTP 路由测试 -- 请求头身份、状态码映射、响应结构"""

from httpx import AsyncClient


async def _create(client: AsyncClient, headers: dict, **body) -> dict:
    payload = {"title": "Ship report", "assignee_emails": ["alice@acme.com"], **body}
    resp = await client.post("/api/tasks", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


class TestIdentity:
    async def test_missing_headers_unauthenticated(self, client: AsyncClient):
        resp = await client.get("/api/tasks")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    async def test_unknown_role_rejected(self, client: AsyncClient, headers_for):
        headers = {**headers_for("alice@acme.com"), "X-Actor-Role": "overlord"}
        resp = await client.get("/api/tasks", headers=headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


class TestTaskRoutes:
    async def test_create_and_detail(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"))
        assert task["status"] == "Pending"
        assert task["lead_email"] is None

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=headers_for("alice@acme.com"))
        assert resp.status_code == 200
        data = resp.json()
        assert data["task"]["task_id"] == task["task_id"]
        assert [e["type"] for e in data["history"]] == ["Created"]
        assert data["comments"] == []
        assert data["attachments"] == []

    async def test_create_permission_denied(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/tasks",
            json={"title": "Sneaky", "assignee_emails": ["bob@acme.com"]},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_create_empty_assignees(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/tasks",
            json={"title": "Nobody", "assignee_emails": []},
            headers=headers_for("boss@acme.com"),
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_task_not_found(self, client: AsyncClient, headers_for):
        resp = await client.get(
            "/api/tasks/01JNONEXISTENT000000000000", headers=headers_for("boss@acme.com")
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"

    async def test_list_and_summary(self, client: AsyncClient, headers_for):
        boss = headers_for("boss@acme.com")
        await _create(client, boss, title="Audit books")
        await _create(client, boss, title="Fix printer", assignee_emails=["bob@acme.com"])

        resp = await client.get("/api/tasks", params={"search": "printer"}, headers=boss)
        assert [t["title"] for t in resp.json()["tasks"]] == ["Fix printer"]

        resp = await client.get("/api/tasks", headers=headers_for("alice@acme.com"))
        assert [t["title"] for t in resp.json()["tasks"]] == ["Audit books"]

        resp = await client.get("/api/tasks/summary", headers=boss)
        assert resp.json() == {"active": 2, "completed": 0}

    async def test_assignees(self, client: AsyncClient, headers_for):
        resp = await client.get("/api/assignees", headers=headers_for("dave@acme.com"))
        assert resp.status_code == 200
        emails = {e["email"] for e in resp.json()["employees"]}
        assert emails == {"bob@acme.com", "carol@acme.com"}

    async def test_patch_and_delete(self, client: AsyncClient, headers_for):
        boss = headers_for("boss@acme.com")
        task = await _create(client, boss)

        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"description": "Include appendix", "estimated_hours": 3},
            headers=boss,
        )
        assert resp.status_code == 200
        assert resp.json()["task"]["description"] == "Include appendix"

        resp = await client.patch(
            f"/api/tasks/{task['task_id']}",
            json={"title": "Hijack"},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 403

        resp = await client.delete(f"/api/tasks/{task['task_id']}", headers=boss)
        assert resp.json() == {"task_id": task["task_id"], "deleted": True}

        resp = await client.delete(f"/api/tasks/{task['task_id']}", headers=boss)
        assert resp.status_code == 404


class TestTransitionRoute:
    async def test_transition_success(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"))
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "InProgress", "expected_status": "Pending"},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 200
        assert resp.json()["task"]["status"] == "InProgress"

    async def test_conflict_returns_current_task(self, client: AsyncClient, headers_for):
        """拖拽来源列过期：409 且附带当前快照供客户端回滚"""
        alice = headers_for("alice@acme.com")
        task = await _create(client, headers_for("boss@acme.com"))
        await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "InProgress"},
            headers=alice,
        )

        resp = await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "InProgress", "expected_status": "Pending"},
            headers=alice,
        )
        assert resp.status_code == 409
        data = resp.json()
        assert data["error"]["code"] == "TASK_STATUS_CONFLICT"
        assert data["task"]["status"] == "InProgress"

    async def test_illegal_edge_returns_current_task(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"))
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "Completed"},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 422
        assert resp.json()["task"]["status"] == "Pending"

    async def test_non_assignee_forbidden(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"))
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "InProgress"},
            headers=headers_for("bob@acme.com"),
        )
        assert resp.status_code == 403
        assert "task" not in resp.json()

    async def test_unknown_status_schema_error(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"))
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/transition",
            json={"status": "Done"},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 422


class TestTeamAndActivityRoutes:
    async def test_manage_team(self, client: AsyncClient, headers_for):
        task = await _create(client, headers_for("boss@acme.com"), assignment_type="Delegate")
        assert task["lead_email"] == "alice@acme.com"

        resp = await client.put(
            f"/api/tasks/{task['task_id']}/team",
            json={"assignee_emails": ["alice@acme.com", "erin@acme.com"]},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 200
        assert resp.json()["task"]["assignee_emails"] == ["alice@acme.com", "erin@acme.com"]

        resp = await client.put(
            f"/api/tasks/{task['task_id']}/team",
            json={"assignee_emails": ["erin@acme.com"]},
            headers=headers_for("alice@acme.com"),
        )
        assert resp.status_code == 422

    async def test_comment_and_attachment(self, client: AsyncClient, headers_for):
        alice = headers_for("alice@acme.com")
        task = await _create(client, headers_for("boss@acme.com"))

        resp = await client.post(
            f"/api/tasks/{task['task_id']}/comments", json={"text": "On it"}, headers=alice
        )
        assert resp.status_code == 201
        assert resp.json()["comment"]["text"] == "On it"

        resp = await client.post(
            f"/api/tasks/{task['task_id']}/attachments",
            json={"name": "draft.docx", "url": "https://files.example.com/draft.docx"},
            headers=alice,
        )
        assert resp.status_code == 201

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=alice)
        data = resp.json()
        assert [e["type"] for e in data["history"]] == ["Created", "Comment", "Attachment"]
        assert len(data["comments"]) == 1
        assert data["attachments"][0]["name"] == "draft.docx"

        resp = await client.post(
            f"/api/tasks/{task['task_id']}/comments",
            json={"text": "me too"},
            headers=headers_for("carol@acme.com"),
        )
        assert resp.status_code == 403
