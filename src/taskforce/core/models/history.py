"""HistoryEntry Domain Model

历史日志 append-only，不允许更新或重排；任务删除时随任务一并物理删除。
entry_id 使用 ULID 格式，时间有序。
task_seq 同一 task 内严格单调递增。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import HistoryType


class HistoryEntry(BaseModel):
    """历史条目 -- 以 task_id 为键的独立有序日志"""

    entry_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    task_id: str = Field(description="关联的 Task ID")
    tenant_id: str = Field(description="所属组织")
    task_seq: int = Field(description="任务内序号，严格单调递增")
    ts: datetime = Field(description="条目时间戳")
    type: HistoryType = Field(description="条目类型")
    actor: str = Field(description="操作者 email")
    detail: str | None = Field(default=None, description="面向审计展示的简短说明")
    payload: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
