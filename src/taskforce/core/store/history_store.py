"""HistoryStore SQLite 实现

历史日志 append-only：只允许插入，不允许更新；
仅在任务被物理删除时随任务一并删除。
task_seq 同一 task 内严格单调递增。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import HistoryType
from ..models.history import HistoryEntry

_HISTORY_COLUMNS = "entry_id, task_id, tenant_id, task_seq, ts, type, actor, detail, payload"


class SqliteHistoryStore:
    """HistoryStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_entry(self, entry: HistoryEntry) -> None:
        """追加历史条目（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"""
            INSERT INTO task_history ({_HISTORY_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.task_id,
                entry.tenant_id,
                entry.task_seq,
                entry.ts.isoformat(),
                entry.type.value,
                entry.actor,
                entry.detail,
                json.dumps(entry.payload, ensure_ascii=False),
            ),
        )

    async def get_entries_for_task(self, task_id: str) -> list[HistoryEntry]:
        """查询指定任务的全部历史，按 task_seq 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_HISTORY_COLUMNS} FROM task_history WHERE task_id = ? ORDER BY task_seq ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1）

        在事务内调用以确保原子性。
        """
        cursor = await self._conn.execute(
            "SELECT COALESCE(MAX(task_seq), 0) FROM task_history WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return (row[0] if row else 0) + 1

    async def get_all_entries(self) -> list[HistoryEntry]:
        """查询全部历史，按 task_id 和 task_seq 排序（用于 Projection 重建）"""
        cursor = await self._conn.execute(
            f"SELECT {_HISTORY_COLUMNS} FROM task_history ORDER BY task_id, task_seq ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def delete_entries_for_task(self, task_id: str) -> int:
        """随任务物理删除其历史（仅供删除事务调用）"""
        cursor = await self._conn.execute(
            "DELETE FROM task_history WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> HistoryEntry:
        """将数据库行转换为 HistoryEntry 模型"""
        payload = json.loads(row[8]) if row[8] else {}
        return HistoryEntry(
            entry_id=row[0],
            task_id=row[1],
            tenant_id=row[2],
            task_seq=row[3],
            ts=datetime.fromisoformat(row[4]),
            type=HistoryType(row[5]),
            actor=row[6],
            detail=row[7],
            payload=payload,
        )
