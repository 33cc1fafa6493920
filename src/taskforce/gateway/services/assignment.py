"""AssignmentResolver -- 分配模式解析与资格校验

根据分配模式（Individual / Team / Delegate）计算有效执行人集合，
并在服务端强制校验创建者可以指派哪些员工和团队。
"""

from collections.abc import Iterable

import structlog
from pydantic import BaseModel, Field
from taskforce.core.authz import has_capability
from taskforce.core.exceptions import PermissionDeniedError, TaskValidationError
from taskforce.core.models import (
    Actor,
    AssignmentType,
    Capability,
    Employee,
    Task,
    TaskDraft,
    Team,
)
from taskforce.directory.protocols import Directory, TeamRegistry

log = structlog.get_logger()


def dedupe_emails(emails: Iterable[str]) -> list[str]:
    """去除空白与空项，保持首次出现的顺序去重"""
    seen: set[str] = set()
    result: list[str] = []
    for raw in emails:
        email = raw.strip()
        if not email or email in seen:
            continue
        seen.add(email)
        result.append(email)
    return result


class ResolvedAssignment(BaseModel):
    """解析结果"""

    assignment_type: AssignmentType
    assignee_emails: list[str] = Field(min_length=1)
    team_id: str | None = None


class TeamChange(BaseModel):
    """Delegate 负责人调整团队后的结果"""

    assignee_emails: list[str]
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class AssignmentResolver:
    """有效执行人集合计算"""

    def __init__(self, directory: Directory, teams: TeamRegistry) -> None:
        self._directory = directory
        self._teams = teams

    async def resolve(self, actor: Actor, draft: TaskDraft) -> ResolvedAssignment:
        """计算草稿的有效执行人，并校验 actor 是否有权这样指派

        Raises:
            TaskValidationError: 执行人为空、团队不存在、Delegate 负责人数量不为 1 等
            PermissionDeniedError: actor 无权指派所选员工或团队
            DependencyUnavailableError: 目录或团队注册表不可用
        """
        team: Team | None = None
        if draft.assignment_type == AssignmentType.TEAM:
            if not draft.team_id:
                raise TaskValidationError("team_id is required for Team assignment")
            team = await self._teams.get_team(actor.tenant_id, draft.team_id)
            if team is None:
                raise TaskValidationError(f"Team {draft.team_id} does not exist")
            # 调用方传入的 emails 被忽略
            emails = dedupe_emails([team.leader_email, *team.member_emails])
        else:
            emails = dedupe_emails(draft.assignee_emails)
            if not emails:
                raise TaskValidationError("At least one assignee is required")
            if draft.assignment_type == AssignmentType.DELEGATE and len(emails) != 1:
                raise TaskValidationError("Delegate assignment takes exactly one lead")

        await self._check_eligibility(actor, draft.assignment_type, emails, team)

        return ResolvedAssignment(
            assignment_type=draft.assignment_type,
            assignee_emails=emails,
            team_id=team.team_id if team else None,
        )

    async def _check_eligibility(
        self,
        actor: Actor,
        assignment_type: AssignmentType,
        emails: list[str],
        team: Team | None,
    ) -> None:
        if has_capability(actor, Capability.ASSIGN_TASKS):
            if assignment_type != AssignmentType.TEAM:
                await self._require_known_employees(actor.tenant_id, emails)
            return

        led_teams = await self.teams_led_by(actor)
        if not led_teams:
            raise PermissionDeniedError(
                "Only employers, admins, assign_tasks holders or team leaders can assign tasks"
            )

        if assignment_type == AssignmentType.TEAM:
            if team is None or team.team_id not in {t.team_id for t in led_teams}:
                raise PermissionDeniedError("Team leaders can only assign teams they lead")
            return

        roster = _roster(led_teams)
        outside = [email for email in emails if email not in roster]
        if outside:
            log.info(
                "assignment_outside_roster",
                actor=actor.email,
                outside=outside,
            )
            raise PermissionDeniedError(
                f"Team leaders can only assign members of their own teams: {', '.join(outside)}"
            )

    async def _require_known_employees(self, tenant_id: str, emails: list[str]) -> None:
        for email in emails:
            if await self._directory.get_employee(tenant_id, email) is None:
                raise TaskValidationError(f"Employee {email} does not exist")

    async def teams_led_by(self, actor: Actor) -> list[Team]:
        """actor 作为负责人的团队"""
        teams = await self._teams.list_teams(actor.tenant_id)
        return [t for t in teams if t.leader_email == actor.email]

    async def assignable_employees(self, actor: Actor) -> list[Employee]:
        """actor 可以选择的员工（供 UI 选择器使用，服务端仍会再次校验）"""
        employees = await self._directory.list_employees(actor.tenant_id)
        if has_capability(actor, Capability.ASSIGN_TASKS):
            return employees
        led_teams = await self.teams_led_by(actor)
        if not led_teams:
            return []
        roster = _roster(led_teams)
        return [e for e in employees if e.email in roster]

    async def reresolve(
        self,
        actor: Actor,
        task: Task,
        new_assignee_emails: list[str],
    ) -> TeamChange:
        """Delegate 负责人调整团队成员

        负责人始终保持在 index 0，其余成员按调用方给出的顺序排列。

        Raises:
            TaskValidationError: 非 Delegate 任务、移除负责人、新成员不在目录中
            PermissionDeniedError: actor 不是负责人
        """
        if task.assignment_type != AssignmentType.DELEGATE:
            raise TaskValidationError("Only Delegate tasks support team management")

        lead = task.lead_email
        if actor.email != lead:
            raise PermissionDeniedError("Only the delegate lead can manage the task team")

        requested = dedupe_emails(new_assignee_emails)
        if lead not in requested:
            raise TaskValidationError("Cannot remove the delegate lead")

        new_list = [lead, *[email for email in requested if email != lead]]
        current = set(task.assignee_emails)
        added = [email for email in new_list if email not in current]
        removed = [email for email in task.assignee_emails if email not in set(new_list)]

        await self._require_known_employees(actor.tenant_id, added)

        return TeamChange(assignee_emails=new_list, added=added, removed=removed)


def _roster(teams: list[Team]) -> set[str]:
    """所领导团队的成员集合"""
    roster: set[str] = set()
    for team in teams:
        roster.update(team.member_emails)
    return roster
