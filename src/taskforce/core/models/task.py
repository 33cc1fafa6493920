"""Task Domain Model

tasks 表是 task_history 的物化视图（projection），
所有字段更新都伴随一条历史条目在同一事务内写入。
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..config import DEFAULT_CATEGORY
from .enums import AssignmentType, Priority, TaskStatus


def normalize_tags(value: Any) -> Any:
    """标签支持逗号分隔字符串输入，去除首尾空白并丢弃空项"""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [str(t).strip() for t in value if str(t).strip()]
    return value


class TaskPointers(BaseModel):
    """Task 指针信息"""

    latest_entry_id: str | None = Field(default=None, description="最新历史条目 ID")


class Task(BaseModel):
    """Task 数据模型（聚合根）"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    tenant_id: str = Field(description="所属组织")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    due_date: date | None = Field(default=None, description="截止日期（仅用于逾期筛选）")
    assignment_type: AssignmentType = Field(description="分配模式")
    assignee_emails: list[str] = Field(description="执行人列表（Delegate 模式下 index 0 为负责人）")
    team_id: str | None = Field(default=None, description="Team 模式下的团队 ID")
    creator_email: str = Field(description="创建者")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    category: str = Field(default=DEFAULT_CATEGORY, description="分类")
    tags: list[str] = Field(default_factory=list, description="标签")
    estimated_hours: float = Field(default=0.0, ge=0, description="预估工时")
    pointers: TaskPointers = Field(default_factory=TaskPointers, description="指针信息")

    @property
    def lead_email(self) -> str | None:
        """Delegate 模式的负责人"""
        if self.assignment_type != AssignmentType.DELEGATE or not self.assignee_emails:
            return None
        return self.assignee_emails[0]

    def is_overdue(self, today: date) -> bool:
        """截止日期早于 today 且尚未完成"""
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        return self.due_date < today


class TaskDraft(BaseModel):
    """任务草稿（创建入参）"""

    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    assignment_type: AssignmentType = AssignmentType.INDIVIDUAL
    assignee_emails: list[str] = Field(default_factory=list)
    team_id: str | None = None
    category: str = DEFAULT_CATEGORY
    tags: list[str] = Field(default_factory=list)
    estimated_hours: float = Field(default=0.0, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return normalize_tags(value)


# 可由 employer/admin 编辑的字段
EDITABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "priority",
    "due_date",
    "category",
    "tags",
    "estimated_hours",
)


class TaskFieldsUpdate(BaseModel):
    """字段更新（部分字段，未提供的字段保持不变）"""

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    due_date: date | None = None
    category: str | None = None
    tags: list[str] | None = None
    estimated_hours: float | None = Field(default=None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        return None if value is None else normalize_tags(value)

    def provided_fields(self) -> dict[str, Any]:
        """返回调用方显式提供的字段（仅 due_date 允许显式置空）"""
        provided: dict[str, Any] = {}
        for key in EDITABLE_FIELDS:
            if key not in self.model_fields_set:
                continue
            value = getattr(self, key)
            if value is None and key != "due_date":
                continue
            provided[key] = value
        return provided
