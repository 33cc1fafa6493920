"""Notice Domain Model -- 交给 Notification Sink 的通知"""

from pydantic import BaseModel, Field, model_validator

from .enums import Role


class Notice(BaseModel):
    """通知：按 email 或按角色寻址，二者至少其一"""

    tenant_id: str
    title: str
    message: str
    target_email: str | None = Field(default=None, description="按人寻址")
    target_role: Role | None = Field(default=None, description="按角色寻址")
    task_id: str | None = Field(default=None, description="关联任务")

    @model_validator(mode="after")
    def check_audience(self) -> "Notice":
        if self.target_email is None and self.target_role is None:
            raise ValueError("notice needs target_email or target_role")
        return self
