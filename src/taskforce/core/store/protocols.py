"""Store Protocol 接口定义

定义 TaskStore、HistoryStore、ActivityStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Any, Protocol

from ..models.activity import Attachment, Comment
from ..models.enums import TaskStatus
from ..models.history import HistoryEntry
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, tenant_id: str, task_id: str) -> Task | None:
        """根据 task_id 查询任务（限定租户）"""
        ...

    async def list_tasks(self, tenant_id: str, status: str | None = None) -> list[Task]:
        """查询租户内任务列表，支持按状态筛选"""
        ...

    async def update_task_status(
        self,
        task_id: str,
        status: str,
        updated_at: str,
        latest_entry_id: str,
        expected_status: str | None = None,
    ) -> int:
        """compare-and-set 更新状态，返回受影响行数"""
        ...

    async def update_task_fields(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: str,
        latest_entry_id: str,
    ) -> int:
        """按字段组更新任务"""
        ...

    async def update_assignees(
        self,
        task_id: str,
        assignee_emails: list[str],
        expected_assignee_emails: list[str],
        updated_at: str,
        latest_entry_id: str,
    ) -> int:
        """compare-and-set 替换执行人列表，返回受影响行数"""
        ...

    async def touch_task(self, task_id: str, updated_at: str, latest_entry_id: str) -> int:
        """仅更新 updated_at 与 pointers"""
        ...

    async def delete_task(self, tenant_id: str, task_id: str) -> int:
        """物理删除任务"""
        ...

    async def get_status(self, task_id: str) -> TaskStatus | None:
        """读取当前状态"""
        ...


class HistoryStore(Protocol):
    """History 存储接口

    历史日志 append-only：只允许插入，仅随任务一并删除。
    """

    async def append_entry(self, entry: HistoryEntry) -> None:
        """追加条目"""
        ...

    async def get_entries_for_task(self, task_id: str) -> list[HistoryEntry]:
        """查询指定任务的全部条目"""
        ...

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1）"""
        ...

    async def get_all_entries(self) -> list[HistoryEntry]:
        """查询全部条目（用于 Projection 重建）"""
        ...


class ActivityStore(Protocol):
    """评论 / 附件存储接口"""

    async def add_comment(self, comment: Comment) -> None: ...

    async def list_comments_for_task(self, task_id: str) -> list[Comment]: ...

    async def add_attachment(self, attachment: Attachment) -> None: ...

    async def list_attachments_for_task(self, task_id: str) -> list[Attachment]: ...
