"""Actor Domain Model -- 已通过上游认证的调用者身份

核心不做认证，只基于可信身份做授权。
租户标识随 Actor 显式传递到每个操作。
"""

from pydantic import BaseModel, Field

from .enums import Capability, Role


class Actor(BaseModel):
    """调用者身份"""

    tenant_id: str = Field(description="所属组织")
    email: str = Field(description="调用者 email")
    role: Role = Field(default=Role.EMPLOYEE, description="角色")
    capabilities: frozenset[Capability] = Field(
        default_factory=frozenset,
        description="显式授予的能力（角色自带能力见 authz.ROLE_CAPABILITIES）",
    )
