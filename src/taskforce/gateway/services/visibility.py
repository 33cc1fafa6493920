"""任务可见性规则

employer/admin 可见全部；团队负责人可见自己创建或执行的任务，
以及所领导团队中任一成员为执行人的任务；其他人只可见自己创建或执行的任务。
"""

from pydantic import BaseModel, Field
from taskforce.core.authz import is_admin
from taskforce.core.models import Actor, Task
from taskforce.directory.protocols import TeamRegistry


class VisibilityScope(BaseModel):
    """某个 actor 的可见范围（每次请求计算一次）"""

    email: str
    sees_all: bool = False
    team_member_emails: frozenset[str] = Field(default_factory=frozenset)

    def can_see(self, task: Task) -> bool:
        if self.sees_all:
            return True
        if task.creator_email == self.email or self.email in task.assignee_emails:
            return True
        return any(email in self.team_member_emails for email in task.assignee_emails)


async def build_scope(actor: Actor, teams: TeamRegistry) -> VisibilityScope:
    """根据 actor 角色与团队注册表计算可见范围"""
    if is_admin(actor):
        return VisibilityScope(email=actor.email, sees_all=True)

    members: set[str] = set()
    for team in await teams.list_teams(actor.tenant_id):
        if team.leader_email == actor.email:
            members.update(team.member_emails)
    return VisibilityScope(email=actor.email, team_member_emails=frozenset(members))
