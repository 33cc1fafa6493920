"""外部协作方 Protocol 接口定义

员工目录、团队注册表、通知下发都由外部系统提供，
核心只通过这些接口读取（或发送），所有调用均限定租户。
"""

from typing import Protocol

from taskforce.core.models import Employee, Notice, Team


class Directory(Protocol):
    """员工目录接口"""

    async def get_employee(self, tenant_id: str, email: str) -> Employee | None:
        """查询员工，不存在返回 None"""
        ...

    async def list_employees(self, tenant_id: str) -> list[Employee]:
        """列出租户内全部员工"""
        ...


class TeamRegistry(Protocol):
    """团队注册表接口"""

    async def get_team(self, tenant_id: str, team_id: str) -> Team | None:
        """查询团队，不存在返回 None"""
        ...

    async def list_teams(self, tenant_id: str) -> list[Team]:
        """列出租户内全部团队"""
        ...


class NotificationSink(Protocol):
    """通知下发接口（发送即忘，失败由调用方记录）"""

    async def send(self, notice: Notice) -> None: ...
