"""History Payload 子类型

所有历史条目的结构化 payload 定义。
payload 需包含足够信息以便从历史日志重建 tasks 表。
"""

from datetime import date

from pydantic import BaseModel, Field

from .enums import AssignmentType, Priority, TaskStatus


class CreatedPayload(BaseModel):
    """Created 条目 payload -- 任务初始快照"""

    title: str
    description: str = ""
    priority: Priority
    due_date: date | None = None
    assignment_type: AssignmentType
    assignee_emails: list[str]
    team_id: str | None = None
    creator_email: str
    category: str
    tags: list[str] = Field(default_factory=list)
    estimated_hours: float = 0.0


class StatusChangePayload(BaseModel):
    """StatusChange 条目 payload"""

    from_status: TaskStatus
    to_status: TaskStatus


class UpdatePayload(BaseModel):
    """Update 条目 payload

    changed_fields 与 detail 一致；values 保存新值，供 Projection 重建使用。
    """

    changed_fields: list[str]
    values: dict = Field(default_factory=dict)


class TeamUpdatedPayload(BaseModel):
    """TeamUpdated 条目 payload"""

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    assignee_emails: list[str]


class CommentPayload(BaseModel):
    """Comment 条目 payload"""

    comment_id: str
    text_length: int


class AttachmentPayload(BaseModel):
    """Attachment 条目 payload"""

    attachment_id: str
    name: str
    url: str
