"""Comment / Attachment Domain Model -- 任务下的 append-only 子集合"""

from datetime import datetime

from pydantic import BaseModel, Field


class Comment(BaseModel):
    """任务评论"""

    comment_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    actor: str = Field(description="评论者 email")
    text: str = Field(description="评论内容")
    ts: datetime = Field(description="评论时间")


class Attachment(BaseModel):
    """任务附件（仅记录名称与 URL，文件本身由外部存储托管）"""

    attachment_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    actor: str = Field(description="上传者 email")
    name: str = Field(description="附件名称")
    url: str = Field(description="外部存储地址")
    ts: datetime = Field(description="添加时间")
