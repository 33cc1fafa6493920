"""全局 pytest 配置 -- 临时 SQLite 数据库 + 内存协作方 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from taskforce.core.authz import parse_capabilities
from taskforce.core.models import Actor, Employee, Role, Team
from taskforce.core.store import StoreGroup, create_store_group
from taskforce.directory import RecordingNotificationSink, StaticDirectory

TENANT = "acme"
OTHER_TENANT = "globex"

# email -> (role, permissions)
EMPLOYEES: dict[str, tuple[Role, list[str]]] = {
    "boss@acme.com": (Role.EMPLOYER, []),
    "admin@acme.com": (Role.ADMIN, []),
    "alice@acme.com": (Role.EMPLOYEE, []),
    "bob@acme.com": (Role.EMPLOYEE, []),
    "carol@acme.com": (Role.EMPLOYEE, []),
    "dave@acme.com": (Role.EMPLOYEE, []),
    "erin@acme.com": (Role.EMPLOYEE, ["assign_tasks"]),
    "frank@acme.com": (Role.EMPLOYEE, ["view_payroll"]),
}

TEAMS = [
    Team(
        team_id="team-a",
        name="Alpha",
        leader_email="dave@acme.com",
        member_emails=["bob@acme.com", "carol@acme.com"],
    ),
    Team(
        team_id="team-b",
        name="Beta",
        leader_email="frank@acme.com",
        member_emails=["alice@acme.com"],
        type="Project-Based",
    ),
]


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from taskforce.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest.fixture
def directory() -> StaticDirectory:
    """预置员工与团队的内存目录"""
    static = StaticDirectory()
    for email, (role, permissions) in EMPLOYEES.items():
        static.add_employee(
            TENANT,
            Employee(email=email, name=email.split("@")[0].title(), role=role, permissions=permissions),
        )
    for team in TEAMS:
        static.add_team(TENANT, team)
    static.add_employee(OTHER_TENANT, Employee(email="zed@globex.com", role=Role.EMPLOYER))
    return static


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def actor_for():
    """按 email 构建 Actor（角色与权限取自 EMPLOYEES）"""

    def _build(email: str, tenant_id: str = TENANT) -> Actor:
        role, permissions = EMPLOYEES.get(email, (Role.EMPLOYEE, []))
        if tenant_id != TENANT:
            role, permissions = Role.EMPLOYER, []
        return Actor(
            tenant_id=tenant_id,
            email=email,
            role=role,
            capabilities=parse_capabilities(permissions),
        )

    return _build


@pytest.fixture
def headers_for():
    """按 email 构建可信身份请求头"""

    def _build(email: str, tenant_id: str = TENANT) -> dict[str, str]:
        role, _ = EMPLOYEES.get(email, (Role.EMPLOYEE, []))
        if tenant_id != TENANT:
            role = Role.EMPLOYER
        return {
            "X-Tenant-ID": tenant_id,
            "X-Actor-Email": email,
            "X-Actor-Role": role.value,
        }

    return _build
