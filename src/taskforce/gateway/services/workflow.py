"""工作流状态机 -- 状态流转的授权与合法性校验

检查顺序：授权 -> 冲突（期望状态不符或目标即当前状态） -> 合法边。
真正的写入由 TaskService 在 compare-and-set 事务内完成。
"""

from taskforce.core.authz import is_admin
from taskforce.core.exceptions import (
    PermissionDeniedError,
    TaskStatusConflictError,
    TaskValidationError,
)
from taskforce.core.models import Actor, Task, TaskStatus, validate_transition


def parse_status(value: TaskStatus | str) -> TaskStatus:
    """将外部输入解析为 TaskStatus"""
    try:
        return TaskStatus(value)
    except ValueError as e:
        raise TaskValidationError(f"Unknown status: {value}") from e


def can_transition(actor: Actor, task: Task) -> bool:
    """执行人或 employer/admin 可以推进状态"""
    return actor.email in task.assignee_emails or is_admin(actor)


def check_transition(
    actor: Actor,
    task: Task,
    target: TaskStatus,
    expected_status: TaskStatus | None = None,
) -> None:
    """校验一次状态流转请求

    Raises:
        PermissionDeniedError: actor 既不是执行人也不是 employer/admin
        TaskStatusConflictError: 当前状态与 expected_status 不符，或已处于目标状态
        TaskValidationError: 非法流转边（包括跳过 InProgress 和回退）
    """
    if not can_transition(actor, task):
        raise PermissionDeniedError(
            f"{actor.email} is not allowed to change the status of task {task.task_id}"
        )

    if expected_status is not None and expected_status != task.status:
        raise TaskStatusConflictError(task.task_id, expected_status.value, task.status.value)

    if target == task.status:
        raise TaskStatusConflictError(task.task_id, target.value, task.status.value)

    if not validate_transition(task.status, target):
        raise TaskValidationError(
            f"Cannot transition from {task.status.value} to {target.value}"
        )


def status_change_detail(from_status: TaskStatus, to_status: TaskStatus) -> str:
    return f"{from_status.value} -> {to_status.value}"
