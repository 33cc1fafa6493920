"""gateway 测试配置 -- TaskService 与 FastAPI app fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskforce.core.store import StoreGroup
from taskforce.directory import Collaborators, RecordingNotificationSink, StaticDirectory
from taskforce.gateway.services.live_hub import LiveHub
from taskforce.gateway.services.task_service import TaskService


@pytest_asyncio.fixture
async def live_hub() -> LiveHub:
    return LiveHub()


@pytest_asyncio.fixture
async def service(
    store_group: StoreGroup,
    directory: StaticDirectory,
    sink: RecordingNotificationSink,
    live_hub: LiveHub,
) -> TaskService:
    """使用内存目录与记录型通知的 TaskService"""
    return TaskService(
        store_group,
        directory=directory,
        teams=directory,
        notifier=sink,
        live_hub=live_hub,
    )


@pytest_asyncio.fixture
async def app(
    tmp_path: Path,
    store_group: StoreGroup,
    directory: StaticDirectory,
    sink: RecordingNotificationSink,
    live_hub: LiveHub,
):
    """创建测试用 FastAPI app（绕过 lifespan，手动注入 state）"""
    os.environ["TASKFORCE_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskforce.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.live_hub = live_hub
    application.state.collaborators = Collaborators(directory, directory, sink)

    yield application

    for key in ["TASKFORCE_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
