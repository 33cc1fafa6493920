"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 协作方初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskforce.core.config import get_db_path
from taskforce.core.store import create_store_group
from taskforce.directory import create_collaborators, load_directory_config

from .errors import register_exception_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import activity, assign, health, stream, tasks, team, transition
from .services.live_hub import LiveHub

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和协作方，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    app.state.live_hub = LiveHub()

    directory_config = load_directory_config()
    app.state.collaborators = create_collaborators(directory_config)
    log.info("gateway_started", db_path=db_path, directory_mode=directory_config.mode)

    yield

    await app.state.collaborators.aclose()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskForce Gateway",
        version="0.1.0",
        description="工单编排引擎 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire(app)

    register_exception_handlers(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(assign.router, tags=["assign"])
    app.include_router(transition.router, tags=["transition"])
    app.include_router(team.router, tags=["team"])
    app.include_router(activity.router, tags=["activity"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
