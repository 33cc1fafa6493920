"""外部协作方记录 -- 员工与团队

由 Directory / Team Registry 提供，核心只读不写。
"""

from pydantic import BaseModel, Field

from .enums import Role


class Employee(BaseModel):
    """员工目录条目"""

    email: str
    name: str = ""
    role: Role = Role.EMPLOYEE
    permissions: list[str] = Field(default_factory=list, description="原始权限字符串")


class Team(BaseModel):
    """团队定义"""

    team_id: str
    name: str = ""
    leader_email: str
    member_emails: list[str] = Field(default_factory=list)
    type: str = Field(default="Permanent", description="Permanent / Project-Based")
