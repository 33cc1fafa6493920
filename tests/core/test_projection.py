"""Projection 重建测试

测试内容：
1. apply_entry 对各类条目的内存应用
2. rebuild_all 清空 tasks 表后从历史完整重建
"""

from datetime import UTC, date, datetime, timedelta

from taskforce.core.models import (
    AssignmentType,
    CreatedPayload,
    HistoryEntry,
    HistoryType,
    Priority,
    Task,
    TaskStatus,
)
from taskforce.core.projection import apply_entry, rebuild_all
from taskforce.core.store.history_store import SqliteHistoryStore
from taskforce.core.store.task_store import SqliteTaskStore

TASK_ID = "01JTASK0000000000000000PRJ"
BASE_TS = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _entries() -> list[HistoryEntry]:
    created = CreatedPayload(
        title="Audit stock",
        priority=Priority.LOW,
        due_date=date(2026, 3, 20),
        assignment_type=AssignmentType.DELEGATE,
        assignee_emails=["dave@acme.com"],
        creator_email="boss@acme.com",
        category="Ops",
        tags=["q1"],
        estimated_hours=4,
    ).model_dump(mode="json")

    specs = [
        (HistoryType.CREATED, None, created),
        (HistoryType.TEAM_UPDATED, "added: bob@acme.com", {
            "added": ["bob@acme.com"],
            "removed": [],
            "assignee_emails": ["dave@acme.com", "bob@acme.com"],
        }),
        (HistoryType.STATUS_CHANGE, "Pending -> InProgress", {
            "from_status": "Pending",
            "to_status": "InProgress",
        }),
        (HistoryType.UPDATE, "priority, due_date", {
            "changed_fields": ["priority", "due_date"],
            "values": {"priority": "High", "due_date": None},
        }),
        (HistoryType.COMMENT, "looks good", {"comment_id": "c1", "text_length": 10}),
    ]
    return [
        HistoryEntry(
            entry_id=f"01JENTRY00000000000000000{i}",
            task_id=TASK_ID,
            tenant_id="acme",
            task_seq=i,
            ts=BASE_TS + timedelta(minutes=i),
            type=entry_type,
            actor="boss@acme.com",
            detail=detail,
            payload=payload,
        )
        for i, (entry_type, detail, payload) in enumerate(specs, start=1)
    ]


class TestApplyEntry:
    def test_replay_in_memory(self):
        tasks: dict[str, Task] = {}
        entries = _entries()
        for entry in entries:
            apply_entry(tasks, entry)

        task = tasks[TASK_ID]
        assert task.tenant_id == "acme"
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.assignee_emails == ["dave@acme.com", "bob@acme.com"]
        assert task.priority == Priority.HIGH
        assert task.due_date is None
        assert task.category == "Ops"
        assert task.created_at == entries[0].ts
        assert task.updated_at == entries[-1].ts
        assert task.pointers.latest_entry_id == entries[-1].entry_id

    def test_orphan_entry_ignored(self):
        tasks: dict[str, Task] = {}
        apply_entry(tasks, _entries()[2])
        assert tasks == {}


class TestRebuildAll:
    async def test_rebuild_matches_replay(self, db_conn):
        """清空 tasks 表后从历史重建出相同的任务"""
        task_store = SqliteTaskStore(db_conn)
        history_store = SqliteHistoryStore(db_conn)

        expected: dict[str, Task] = {}
        for entry in _entries():
            apply_entry(expected, entry)
        await task_store.create_task(expected[TASK_ID])
        for entry in _entries():
            await history_store.append_entry(entry)
        await db_conn.commit()

        await db_conn.execute("UPDATE tasks SET status = 'Completed', title = 'corrupted'")
        await db_conn.commit()

        count = await rebuild_all(db_conn, history_store, task_store)

        assert count == 5
        rebuilt = await task_store.get_task("acme", TASK_ID)
        assert rebuilt == expected[TASK_ID]

    async def test_rebuild_empty_history(self, db_conn):
        count = await rebuild_all(db_conn, SqliteHistoryStore(db_conn), SqliteTaskStore(db_conn))
        assert count == 0
