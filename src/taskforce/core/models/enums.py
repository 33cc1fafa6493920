"""枚举定义

包含 TaskStatus 状态机、Priority、AssignmentType、HistoryType、Role、Capability，
以及 VALID_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


# 合法状态流转：只允许顺序前进，不允许跳过或回退
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    # 终态不可再流转
    TaskStatus.COMPLETED: set(),
}


class Priority(StrEnum):
    """任务优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AssignmentType(StrEnum):
    """分配模式 -- 创建时确定，之后不可修改"""

    INDIVIDUAL = "Individual"
    TEAM = "Team"
    DELEGATE = "Delegate"


class HistoryType(StrEnum):
    """历史条目类型"""

    CREATED = "Created"
    STATUS_CHANGE = "StatusChange"
    TEAM_UPDATED = "TeamUpdated"
    UPDATE = "Update"
    COMMENT = "Comment"
    ATTACHMENT = "Attachment"


class Role(StrEnum):
    """操作者角色"""

    EMPLOYER = "employer"
    ADMIN = "admin"
    EMPLOYEE = "employee"


class Capability(StrEnum):
    """能力枚举 -- 所有可识别的权限集中定义于此

    员工目录中的 permissions 字符串只有能映射到此枚举的才会生效。
    """

    ASSIGN_TASKS = "assign_tasks"
    MANAGE_TASKS = "manage_tasks"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
