"""能力检查 -- 所有授权判断统一经过 has_capability()

角色自带能力 + 员工目录中显式授予的能力取并集。
目录中的权限字符串只有能映射到 Capability 枚举的才会生效。
"""

from collections.abc import Iterable

import structlog

from .models.actor import Actor
from .models.directory import Employee
from .models.enums import Capability, Role

log = structlog.get_logger()

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.EMPLOYER: frozenset(Capability),
    Role.ADMIN: frozenset(Capability),
    Role.EMPLOYEE: frozenset(),
}


def parse_capabilities(permissions: Iterable[str]) -> frozenset[Capability]:
    """将目录中的权限字符串映射为 Capability，未知字符串被丢弃"""
    parsed: set[Capability] = set()
    for raw in permissions:
        try:
            parsed.add(Capability(raw.strip()))
        except ValueError:
            log.warning("unknown_permission_ignored", permission=raw)
    return frozenset(parsed)


def has_capability(actor: Actor, capability: Capability) -> bool:
    """判断 actor 是否具备指定能力"""
    if capability in ROLE_CAPABILITIES.get(actor.role, frozenset()):
        return True
    return capability in actor.capabilities


def is_admin(actor: Actor) -> bool:
    """employer/admin 角色（或被显式授予 manage_tasks）"""
    return has_capability(actor, Capability.MANAGE_TASKS)


def build_actor(
    tenant_id: str,
    email: str,
    role: Role,
    employee: Employee | None = None,
) -> Actor:
    """根据请求上下文身份和目录记录构建 Actor"""
    capabilities = parse_capabilities(employee.permissions) if employee else frozenset()
    return Actor(
        tenant_id=tenant_id,
        email=email,
        role=role,
        capabilities=capabilities,
    )
