"""Projection 重建模块

从 task_history 表重建 tasks 表（物化视图），确保历史日志是唯一事实来源。
支持单条目应用和全量重建两种模式。
"""

import time

import aiosqlite
import structlog

from .models.enums import HistoryType, TaskStatus
from .models.history import HistoryEntry
from .models.payloads import CreatedPayload
from .models.task import Task, TaskPointers
from .store.protocols import HistoryStore, TaskStore

log = structlog.get_logger()


def apply_entry(tasks: dict[str, Task], entry: HistoryEntry) -> None:
    """将单个历史条目应用到 Task 状态（内存中操作）

    Args:
        tasks: task_id -> Task 的映射表（会被就地修改）
        entry: 要应用的条目
    """
    task_id = entry.task_id
    pointers = TaskPointers(latest_entry_id=entry.entry_id)

    if entry.type == HistoryType.CREATED:
        payload = CreatedPayload.model_validate(entry.payload)
        tasks[task_id] = Task(
            task_id=task_id,
            tenant_id=entry.tenant_id,
            status=TaskStatus.PENDING,
            created_at=entry.ts,
            updated_at=entry.ts,
            pointers=pointers,
            **payload.model_dump(),
        )
        return

    task = tasks.get(task_id)
    if task is None:
        log.warning("projection_orphan_entry", task_id=task_id, entry_id=entry.entry_id)
        return

    update: dict = {}
    if entry.type == HistoryType.STATUS_CHANGE:
        update["status"] = entry.payload.get("to_status", task.status)
    elif entry.type == HistoryType.UPDATE:
        update.update(entry.payload.get("values", {}))
    elif entry.type == HistoryType.TEAM_UPDATED:
        update["assignee_emails"] = entry.payload.get("assignee_emails", task.assignee_emails)

    # Comment / Attachment：仅推进 updated_at 和 pointers
    data = task.model_dump()
    data.update(update)
    data["updated_at"] = entry.ts
    data["pointers"] = pointers.model_dump()
    tasks[task_id] = Task.model_validate(data)


async def rebuild_all(
    conn: aiosqlite.Connection,
    history_store: HistoryStore,
    task_store: TaskStore,
) -> int:
    """从 task_history 表重建 tasks 表

    流程：
    1. 读取所有条目（按 task_id, task_seq 排序）
    2. 在内存中应用所有条目，构建 Task 状态
    3. 清空 tasks 表
    4. 写入重建后的所有 Task

    Returns:
        处理的条目总数
    """
    start_time = time.monotonic()

    entries = await history_store.get_all_entries()
    entry_count = len(entries)

    await log.ainfo("projection_rebuild_started", entry_count=entry_count)

    tasks: dict[str, Task] = {}
    for entry in entries:
        apply_entry(tasks, entry)

    # 临时禁用外键约束，清空 tasks 表后重建
    await conn.execute("PRAGMA foreign_keys = OFF")
    try:
        await conn.execute("DELETE FROM tasks")
        for task in tasks.values():
            await task_store.create_task(task)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    finally:
        await conn.execute("PRAGMA foreign_keys = ON")

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "projection_rebuild_completed",
        entry_count=entry_count,
        task_count=len(tasks),
        elapsed_ms=elapsed_ms,
    )

    return entry_count
