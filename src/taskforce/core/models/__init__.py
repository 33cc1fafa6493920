"""TaskForce Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import Attachment, Comment
from .actor import Actor
from .directory import Employee, Team
from .enums import (
    VALID_TRANSITIONS,
    AssignmentType,
    Capability,
    HistoryType,
    Priority,
    Role,
    TaskStatus,
    validate_transition,
)
from .history import HistoryEntry
from .notice import Notice
from .payloads import (
    AttachmentPayload,
    CommentPayload,
    CreatedPayload,
    StatusChangePayload,
    TeamUpdatedPayload,
    UpdatePayload,
)
from .task import EDITABLE_FIELDS, Task, TaskDraft, TaskFieldsUpdate, TaskPointers

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "AssignmentType",
    "HistoryType",
    "Role",
    "Capability",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    # Task
    "Task",
    "TaskDraft",
    "TaskFieldsUpdate",
    "TaskPointers",
    "EDITABLE_FIELDS",
    # History
    "HistoryEntry",
    # 子集合
    "Comment",
    "Attachment",
    # 身份与协作方
    "Actor",
    "Employee",
    "Team",
    "Notice",
    # Payloads
    "CreatedPayload",
    "StatusChangePayload",
    "UpdatePayload",
    "TeamUpdatedPayload",
    "CommentPayload",
    "AttachmentPayload",
]
