"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、WAL 模式与协作方可达性。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
from taskforce.core.store import verify_wal_mode

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


async def _check_collaborator(component) -> str:
    health_check = getattr(component, "health_check", None)
    if health_check is None:
        return "skipped"
    try:
        return "ok" if await health_check() else "unreachable"
    except Exception as e:
        log.warning("health_check_error", component=type(component).__name__, error=str(e))
        return "unreachable"


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查

    检查项：
    1. sqlite: 数据库连通性
    2. wal_mode: WAL 是否启用（内存库为 skipped）
    3. directory: 员工目录 / 团队注册表可达性
    4. notification_sink: 通知服务可达性（不影响整体就绪状态）
    """
    checks: dict[str, str] = {}
    all_ok = True

    store_group = request.app.state.store_group
    try:
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
        checks["wal_mode"] = "ok" if await verify_wal_mode(store_group.conn) else "skipped"
    except Exception as e:
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    collaborators = request.app.state.collaborators
    checks["directory"] = await _check_collaborator(collaborators.directory)
    if checks["directory"] == "unreachable":
        all_ok = False

    # 通知失败只记录日志，不阻塞就绪
    checks["notification_sink"] = await _check_collaborator(collaborators.notifier)

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
