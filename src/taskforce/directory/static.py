"""内存实现 -- 开发环境与测试使用

StaticDirectory 同时实现 Directory 与 TeamRegistry，可从 JSON 种子文件加载：

    {
      "tenants": {
        "acme": {
          "employees": [{"email": "...", "role": "employee", "permissions": []}],
          "teams": [{"team_id": "...", "leader_email": "...", "member_emails": []}]
        }
      }
    }

RecordingNotificationSink 只记录通知并写日志。
"""

import json
from pathlib import Path

import structlog

from taskforce.core.models import Employee, Notice, Team

log = structlog.get_logger()


class StaticDirectory:
    """内存中的员工目录 + 团队注册表"""

    def __init__(self) -> None:
        self._employees: dict[str, dict[str, Employee]] = {}
        self._teams: dict[str, dict[str, Team]] = {}

    @classmethod
    def from_seed_file(cls, path: str | Path) -> "StaticDirectory":
        """从 JSON 种子文件构建"""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        directory = cls()
        for tenant_id, tenant in data.get("tenants", {}).items():
            for item in tenant.get("employees", []):
                directory.add_employee(tenant_id, Employee.model_validate(item))
            for item in tenant.get("teams", []):
                directory.add_team(tenant_id, Team.model_validate(item))
        log.info(
            "static_directory_seeded",
            path=str(path),
            tenant_count=len(directory._employees),
        )
        return directory

    def add_employee(self, tenant_id: str, employee: Employee) -> None:
        self._employees.setdefault(tenant_id, {})[employee.email] = employee

    def add_team(self, tenant_id: str, team: Team) -> None:
        self._teams.setdefault(tenant_id, {})[team.team_id] = team

    async def get_employee(self, tenant_id: str, email: str) -> Employee | None:
        return self._employees.get(tenant_id, {}).get(email)

    async def list_employees(self, tenant_id: str) -> list[Employee]:
        return list(self._employees.get(tenant_id, {}).values())

    async def get_team(self, tenant_id: str, team_id: str) -> Team | None:
        return self._teams.get(tenant_id, {}).get(team_id)

    async def list_teams(self, tenant_id: str) -> list[Team]:
        return list(self._teams.get(tenant_id, {}).values())

    async def health_check(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class RecordingNotificationSink:
    """记录所有通知（不做真实投递）"""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    async def send(self, notice: Notice) -> None:
        self.notices.append(notice)
        log.info(
            "notice_recorded",
            tenant_id=notice.tenant_id,
            task_id=notice.task_id,
            target_email=notice.target_email,
            target_role=notice.target_role,
            title=notice.title,
        )

    async def health_check(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None
