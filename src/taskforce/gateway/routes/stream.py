"""SSE 实时快照路由

GET /api/stream/task/{task_id}: 推送指定任务的完整快照。
连接建立后先推送当前快照，之后每次变更推送一次新快照；
任务被删除时推送 deleted 快照并结束流。15 秒心跳保活。
"""

import asyncio
import json

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse
from taskforce.core.config import SSE_HEARTBEAT_INTERVAL
from taskforce.core.exceptions import TaskNotFoundError
from taskforce.core.models import Actor

from ..deps import get_actor, get_live_hub, get_task_service
from ..services.live_hub import LiveHub
from ..services.task_service import TaskService, task_snapshot, tombstone_snapshot

router = APIRouter()


def _snapshot_to_sse(snapshot: dict) -> dict:
    return {
        "id": snapshot.get("latest_entry_id") or "",
        "event": "deleted" if snapshot["deleted"] else "snapshot",
        "data": json.dumps(snapshot, ensure_ascii=False),
    }


@router.get("/api/stream/task/{task_id}")
async def stream_task_snapshots(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
    live_hub: LiveHub = Depends(get_live_hub),
):
    """SSE 快照流端点（需对任务可见）"""
    # 先校验存在性与可见性，错误由统一异常处理器渲染
    await service.get_task(actor, task_id)

    async def snapshot_generator():
        queue = await live_hub.subscribe(task_id)
        try:
            # 订阅之后再读取当前快照，避免丢失中间的变更
            try:
                current = await service.get_task(actor, task_id)
                yield _snapshot_to_sse(task_snapshot(current))
            except TaskNotFoundError:
                yield _snapshot_to_sse(tombstone_snapshot(task_id))
                return

            while True:
                try:
                    snapshot = await asyncio.wait_for(
                        queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                    )
                    yield _snapshot_to_sse(snapshot)
                    if snapshot["deleted"]:
                        return
                except TimeoutError:
                    yield {"comment": "heartbeat"}
        finally:
            await live_hub.unsubscribe(task_id, queue)

    return EventSourceResponse(snapshot_generator())
