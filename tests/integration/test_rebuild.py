"""Projection 重建集成测试 -- 通过 TaskService 产生历史后重建 tasks 表"""

import os
from pathlib import Path

import pytest_asyncio
from taskforce.core.__main__ import main, rebuild_projections
from taskforce.core.models import AssignmentType, TaskDraft, TaskFieldsUpdate, TaskStatus
from taskforce.core.projection import rebuild_all
from taskforce.core.store import create_store_group
from taskforce.gateway.services.task_service import TaskService


@pytest_asyncio.fixture
async def service(store_group, directory, sink) -> TaskService:
    return TaskService(store_group, directory, directory, sink)


async def _populate(service: TaskService, actor_for) -> list[str]:
    boss = actor_for("boss@acme.com")
    alice = actor_for("alice@acme.com")

    first = await service.create_task(
        boss, TaskDraft(title="Quarterly close", assignee_emails=["alice@acme.com"], tags="finance")
    )
    await service.transition_task_status(alice, first.task_id, TaskStatus.IN_PROGRESS)
    await service.update_task_fields(
        boss, first.task_id, TaskFieldsUpdate(estimated_hours=6.5, description="Include Q3")
    )
    await service.add_task_comment(alice, first.task_id, "Numbers pulled")

    second = await service.create_task(
        boss,
        TaskDraft(
            title="Offsite",
            assignment_type=AssignmentType.DELEGATE,
            assignee_emails=["alice@acme.com"],
        ),
    )
    await service.manage_task_team(alice, second.task_id, ["alice@acme.com", "bob@acme.com"])
    return [first.task_id, second.task_id]


class TestRebuild:
    async def test_rebuild_reproduces_tasks(self, service: TaskService, store_group, actor_for):
        task_ids = await _populate(service, actor_for)
        before = [await store_group.task_store.get_task("acme", t) for t in task_ids]

        await store_group.conn.execute("PRAGMA foreign_keys = OFF")
        await store_group.conn.execute("DELETE FROM tasks")
        await store_group.conn.commit()
        await store_group.conn.execute("PRAGMA foreign_keys = ON")
        assert await store_group.task_store.list_tasks("acme") == []

        count = await rebuild_all(
            store_group.conn, store_group.history_store, store_group.task_store
        )

        after = [await store_group.task_store.get_task("acme", t) for t in task_ids]
        assert count == 6
        assert after == before

    async def test_cli_rebuild(self, tmp_path: Path, directory, sink, actor_for):
        db_path = tmp_path / "cli.db"
        group = await create_store_group(str(db_path))
        service = TaskService(group, directory, directory, sink)
        task_ids = await _populate(service, actor_for)
        before = [await group.task_store.get_task("acme", t) for t in task_ids]
        await group.conn.close()

        os.environ["TASKFORCE_DB_PATH"] = str(db_path)
        try:
            assert await rebuild_projections() == 6
        finally:
            os.environ.pop("TASKFORCE_DB_PATH", None)

        group = await create_store_group(str(db_path))
        try:
            after = [await group.task_store.get_task("acme", t) for t in task_ids]
        finally:
            await group.conn.close()
        assert after == before


def test_cli_rejects_unknown_command(capsys):
    assert main([]) == 1
    assert main(["compact"]) == 1
    assert "rebuild-projections" in capsys.readouterr().err
