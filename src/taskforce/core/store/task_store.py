"""TaskStore SQLite 实现

tasks 表是 task_history 的物化视图（projection）。
所有更新必须与历史条目在同一事务内写入，此处仅提供数据库操作。
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import EDITABLE_FIELDS, Task, TaskPointers

_TASK_COLUMNS = (
    "task_id, tenant_id, title, description, status, priority, due_date, "
    "assignment_type, assignee_emails, team_id, creator_email, created_at, "
    "updated_at, category, tags, estimated_hours, pointers"
)

# 允许通过 update_task_fields 写入的列（status 走 update_task_status，执行人走 update_assignees）
_UPDATABLE_COLUMNS: frozenset[str] = frozenset(EDITABLE_FIELDS)

_JSON_COLUMNS: frozenset[str] = frozenset({"assignee_emails", "tags"})


def _to_column_value(key: str, value: Any) -> Any:
    """将模型字段值转换为列值"""
    if key in _JSON_COLUMNS:
        return json.dumps(list(value), ensure_ascii=False)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.tenant_id,
                task.title,
                task.description,
                task.status.value,
                task.priority.value,
                task.due_date.isoformat() if task.due_date else None,
                task.assignment_type.value,
                json.dumps(task.assignee_emails, ensure_ascii=False),
                task.team_id,
                task.creator_email,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.category,
                json.dumps(task.tags, ensure_ascii=False),
                task.estimated_hours,
                task.pointers.model_dump_json(),
            ),
        )

    async def get_task(self, tenant_id: str, task_id: str) -> Task | None:
        """根据 task_id 查询任务（限定租户）"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE tenant_id = ? AND task_id = ?",
            (tenant_id, task_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        tenant_id: str,
        status: str | None = None,
    ) -> list[Task]:
        """查询租户内任务列表，支持按状态筛选，按 created_at 倒序"""
        if status:
            cursor = await self._conn.execute(
                f"""
                SELECT {_TASK_COLUMNS} FROM tasks
                WHERE tenant_id = ? AND status = ?
                ORDER BY created_at DESC, task_id DESC
                """,
                (tenant_id, status),
            )
        else:
            cursor = await self._conn.execute(
                f"""
                SELECT {_TASK_COLUMNS} FROM tasks
                WHERE tenant_id = ?
                ORDER BY created_at DESC, task_id DESC
                """,
                (tenant_id,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task_status(
        self,
        task_id: str,
        status: str,
        updated_at: str,
        latest_entry_id: str,
        expected_status: str | None = None,
    ) -> int:
        """更新任务状态（compare-and-set）

        expected_status 不为 None 时，仅当当前状态等于 expected_status 才更新。

        Returns:
            受影响行数（0 表示 CAS 失败或任务不存在）
        """
        if expected_status is None:
            cursor = await self._conn.execute(
                """
                UPDATE tasks
                SET status = ?, updated_at = ?,
                    pointers = json_set(pointers, '$.latest_entry_id', ?)
                WHERE task_id = ?
                """,
                (status, updated_at, latest_entry_id, task_id),
            )
        else:
            cursor = await self._conn.execute(
                """
                UPDATE tasks
                SET status = ?, updated_at = ?,
                    pointers = json_set(pointers, '$.latest_entry_id', ?)
                WHERE task_id = ? AND status = ?
                """,
                (status, updated_at, latest_entry_id, task_id, expected_status),
            )
        return cursor.rowcount

    async def update_task_fields(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: str,
        latest_entry_id: str,
    ) -> int:
        """按字段组更新任务（last-writer-wins）

        Raises:
            ValueError: 包含不允许直接写入的列（如 status）
        """
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"columns not updatable: {sorted(unknown)}")

        assignments = [f"{key} = ?" for key in fields]
        params: list[Any] = [_to_column_value(key, value) for key, value in fields.items()]
        assignments.append("updated_at = ?")
        assignments.append("pointers = json_set(pointers, '$.latest_entry_id', ?)")
        params.extend([updated_at, latest_entry_id, task_id])

        cursor = await self._conn.execute(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
            tuple(params),
        )
        return cursor.rowcount

    async def update_assignees(
        self,
        task_id: str,
        assignee_emails: list[str],
        expected_assignee_emails: list[str],
        updated_at: str,
        latest_entry_id: str,
    ) -> int:
        """替换执行人列表（compare-and-set）

        仅当当前列表等于 expected_assignee_emails 时更新。

        Returns:
            受影响行数（0 表示 CAS 失败或任务不存在）
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET assignee_emails = ?, updated_at = ?,
                pointers = json_set(pointers, '$.latest_entry_id', ?)
            WHERE task_id = ? AND assignee_emails = ?
            """,
            (
                _to_column_value("assignee_emails", assignee_emails),
                updated_at,
                latest_entry_id,
                task_id,
                _to_column_value("assignee_emails", expected_assignee_emails),
            ),
        )
        return cursor.rowcount

    async def touch_task(self, task_id: str, updated_at: str, latest_entry_id: str) -> int:
        """仅更新 updated_at 与 pointers（评论、附件等不改变字段的条目）"""
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET updated_at = ?,
                pointers = json_set(pointers, '$.latest_entry_id', ?)
            WHERE task_id = ?
            """,
            (updated_at, latest_entry_id, task_id),
        )
        return cursor.rowcount

    async def delete_task(self, tenant_id: str, task_id: str) -> int:
        """物理删除任务记录"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE tenant_id = ? AND task_id = ?",
            (tenant_id, task_id),
        )
        return cursor.rowcount

    async def get_status(self, task_id: str) -> TaskStatus | None:
        """读取当前状态（用于 CAS 失败后的诊断）"""
        cursor = await self._conn.execute(
            "SELECT status FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return TaskStatus(row[0]) if row else None

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        pointers_data = json.loads(row[16]) if row[16] else {}
        return Task(
            task_id=row[0],
            tenant_id=row[1],
            title=row[2],
            description=row[3],
            status=row[4],
            priority=row[5],
            due_date=date.fromisoformat(row[6]) if row[6] else None,
            assignment_type=row[7],
            assignee_emails=json.loads(row[8]),
            team_id=row[9],
            creator_email=row[10],
            created_at=datetime.fromisoformat(row[11]),
            updated_at=datetime.fromisoformat(row[12]),
            category=row[13],
            tags=json.loads(row[14]),
            estimated_hours=row[15],
            pointers=TaskPointers(**pointers_data),
        )
