"""历史条目 + Projection 原子事务封装

每一个改变任务可见状态的变更，都与其对应的历史条目在同一 SQLite 事务内提交。
先写 tasks 行并检查受影响行数：任务已被删除时回滚并抛出 TaskNotFoundError，
不会留下指向不存在任务的历史或评论。任何一步失败即回滚并向上抛出。
"""

import aiosqlite

from ..exceptions import TaskNotFoundError, TaskStatusConflictError, TaskTeamConflictError
from ..models.activity import Attachment, Comment
from ..models.history import HistoryEntry
from ..models.task import Task
from .activity_store import SqliteActivityStore
from .history_store import SqliteHistoryStore
from .task_store import SqliteTaskStore


async def create_task_with_initial_entry(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    history_store: SqliteHistoryStore,
    task: Task,
    entry: HistoryEntry,
) -> None:
    """单事务写入 Task 与 Created 条目"""
    try:
        await task_store.create_task(task)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def append_entry_and_update_status(
    conn: aiosqlite.Connection,
    history_store: SqliteHistoryStore,
    task_store: SqliteTaskStore,
    entry: HistoryEntry,
    new_status: str,
    expected_status: str,
) -> None:
    """单事务写入 StatusChange 条目并 compare-and-set 更新状态

    Raises:
        TaskNotFoundError: 任务已被删除
        TaskStatusConflictError: 当前状态不等于 expected_status
    """
    try:
        updated = await task_store.update_task_status(
            task_id=entry.task_id,
            status=new_status,
            updated_at=entry.ts.isoformat(),
            latest_entry_id=entry.entry_id,
            expected_status=expected_status,
        )
        if updated == 0:
            actual = await task_store.get_status(entry.task_id)
            if actual is None:
                raise TaskNotFoundError(entry.task_id)
            raise TaskStatusConflictError(entry.task_id, expected_status, actual.value)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def append_entry_and_update_fields(
    conn: aiosqlite.Connection,
    history_store: SqliteHistoryStore,
    task_store: SqliteTaskStore,
    entry: HistoryEntry,
    fields: dict,
) -> None:
    """单事务写入 Update 条目并更新对应字段（last-writer-wins）

    Raises:
        TaskNotFoundError: 任务已被删除
    """
    try:
        updated = await task_store.update_task_fields(
            task_id=entry.task_id,
            fields=fields,
            updated_at=entry.ts.isoformat(),
            latest_entry_id=entry.entry_id,
        )
        if updated == 0:
            raise TaskNotFoundError(entry.task_id)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def append_entry_and_update_team(
    conn: aiosqlite.Connection,
    history_store: SqliteHistoryStore,
    task_store: SqliteTaskStore,
    entry: HistoryEntry,
    assignee_emails: list[str],
    expected_assignee_emails: list[str],
) -> None:
    """单事务写入 TeamUpdated 条目并 compare-and-set 替换执行人列表

    条目中的 added / removed 基于 expected_assignee_emails 计算，
    列表已被并发修改时拒绝写入，保证每次成员变化都有对应条目。

    Raises:
        TaskNotFoundError: 任务已被删除
        TaskTeamConflictError: 当前列表不等于 expected_assignee_emails
    """
    try:
        updated = await task_store.update_assignees(
            task_id=entry.task_id,
            assignee_emails=assignee_emails,
            expected_assignee_emails=expected_assignee_emails,
            updated_at=entry.ts.isoformat(),
            latest_entry_id=entry.entry_id,
        )
        if updated == 0:
            if await task_store.get_status(entry.task_id) is None:
                raise TaskNotFoundError(entry.task_id)
            raise TaskTeamConflictError(entry.task_id)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def _touch_or_not_found(task_store: SqliteTaskStore, entry: HistoryEntry) -> None:
    touched = await task_store.touch_task(
        task_id=entry.task_id,
        updated_at=entry.ts.isoformat(),
        latest_entry_id=entry.entry_id,
    )
    if touched == 0:
        raise TaskNotFoundError(entry.task_id)


async def append_comment_with_entry(
    conn: aiosqlite.Connection,
    activity_store: SqliteActivityStore,
    history_store: SqliteHistoryStore,
    task_store: SqliteTaskStore,
    comment: Comment,
    entry: HistoryEntry,
) -> None:
    """单事务写入评论与 Comment 条目"""
    try:
        await _touch_or_not_found(task_store, entry)
        await activity_store.add_comment(comment)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def append_attachment_with_entry(
    conn: aiosqlite.Connection,
    activity_store: SqliteActivityStore,
    history_store: SqliteHistoryStore,
    task_store: SqliteTaskStore,
    attachment: Attachment,
    entry: HistoryEntry,
) -> None:
    """单事务写入附件与 Attachment 条目"""
    try:
        await _touch_or_not_found(task_store, entry)
        await activity_store.add_attachment(attachment)
        await history_store.append_entry(entry)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def delete_task_cascade(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    history_store: SqliteHistoryStore,
    activity_store: SqliteActivityStore,
    tenant_id: str,
    task_id: str,
) -> bool:
    """单事务物理删除任务及其历史、评论、附件

    子表先于 tasks 删除（外键约束）。

    Returns:
        True 如果任务存在并已删除
    """
    try:
        await activity_store.delete_for_task(task_id)
        await history_store.delete_entries_for_task(task_id)
        deleted = await task_store.delete_task(tenant_id, task_id)
        if deleted == 0:
            await conn.rollback()
            return False
        await conn.commit()
        return True
    except Exception:
        await conn.rollback()
        raise
