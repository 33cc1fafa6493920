"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、协作方与调用者身份

实例通过 app.state 管理，在 lifespan 中初始化/清理。
调用者身份由上游认证代理以请求头注入，核心只做授权。
"""

import structlog
from fastapi import Depends, Request
from taskforce.core.authz import build_actor
from taskforce.core.exceptions import TaskValidationError, UnauthenticatedError
from taskforce.core.models import Actor, Role
from taskforce.core.store import StoreGroup
from taskforce.directory import Collaborators

from .services.live_hub import LiveHub
from .services.task_service import TaskService

TENANT_HEADER = "X-Tenant-ID"
EMAIL_HEADER = "X-Actor-Email"
ROLE_HEADER = "X-Actor-Role"


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_live_hub(request: Request) -> LiveHub:
    """从 app.state 获取 LiveHub 实例"""
    return request.app.state.live_hub


def get_collaborators(request: Request) -> Collaborators:
    """从 app.state 获取协作方实例组"""
    return request.app.state.collaborators


async def get_actor(
    request: Request,
    collaborators: Collaborators = Depends(get_collaborators),
) -> Actor:
    """从可信请求头构建 Actor，并从员工目录读取显式授予的权限"""
    tenant_id = request.headers.get(TENANT_HEADER, "").strip()
    email = request.headers.get(EMAIL_HEADER, "").strip()
    role_value = request.headers.get(ROLE_HEADER, "").strip().lower()
    if not tenant_id or not email or not role_value:
        raise UnauthenticatedError(
            f"Missing identity headers: {TENANT_HEADER}, {EMAIL_HEADER}, {ROLE_HEADER}"
        )
    try:
        role = Role(role_value)
    except ValueError as e:
        raise TaskValidationError(f"Unknown role: {role_value}") from e

    employee = await collaborators.directory.get_employee(tenant_id, email)
    actor = build_actor(tenant_id, email, role, employee)

    structlog.contextvars.bind_contextvars(tenant_id=tenant_id, actor=email)
    return actor


def get_task_service(
    store_group: StoreGroup = Depends(get_store_group),
    collaborators: Collaborators = Depends(get_collaborators),
    live_hub: LiveHub = Depends(get_live_hub),
) -> TaskService:
    """按请求构建 TaskService"""
    return TaskService(
        store_group,
        directory=collaborators.directory,
        teams=collaborators.teams,
        notifier=collaborators.notifier,
        live_hub=live_hub,
    )
