"""NotificationDispatcher -- 将生命周期事件转换为通知

每次发送相互独立：任何失败只记录日志，绝不影响触发它的操作。
"""

import structlog
from taskforce.core.models import Actor, Notice, Role, Task
from taskforce.directory.protocols import NotificationSink

log = structlog.get_logger()


class NotificationDispatcher:
    """生命周期通知分发"""

    def __init__(self, sink: NotificationSink) -> None:
        self._sink = sink

    async def task_created(self, task: Task, actor: Actor) -> int:
        """创建时：每个初始执行人一条按 email 寻址的通知

        Returns:
            成功发送的条数
        """
        sent = 0
        for email in task.assignee_emails:
            notice = Notice(
                tenant_id=task.tenant_id,
                title="New task assigned",
                message=f"{actor.email} assigned you: {task.title}",
                target_email=email,
                task_id=task.task_id,
            )
            if await self._send(notice):
                sent += 1
        return sent

    async def task_completed(self, task: Task, actor: Actor) -> bool:
        """进入 Completed：一条按 employer 角色寻址的通知"""
        notice = Notice(
            tenant_id=task.tenant_id,
            title="Task completed",
            message=f"{actor.email} completed: {task.title}",
            target_role=Role.EMPLOYER,
            task_id=task.task_id,
        )
        return await self._send(notice)

    async def _send(self, notice: Notice) -> bool:
        try:
            await self._sink.send(notice)
            return True
        except Exception as e:
            log.warning(
                "notification_dispatch_failed",
                task_id=notice.task_id,
                target_email=notice.target_email,
                target_role=notice.target_role,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False
