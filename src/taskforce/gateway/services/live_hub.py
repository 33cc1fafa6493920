"""LiveHub -- 任务快照的实时推送

每次变更推送的是完整快照，订阅者整体替换本地状态，因此只有最新一份有意义：
队列写满时丢弃最旧的快照而不是断开订阅者。
"""

import asyncio
from typing import Any

import structlog

log = structlog.get_logger()

Snapshot = dict[str, Any]


class LiveHub:
    """按 task_id 分组的快照订阅表"""

    def __init__(self, queue_maxsize: int = 16) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[Snapshot]]] = {}
        self._queue_maxsize = queue_maxsize

    async def subscribe(self, task_id: str) -> asyncio.Queue[Snapshot]:
        queue: asyncio.Queue[Snapshot] = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.setdefault(task_id, set()).add(queue)
        return queue

    async def unsubscribe(self, task_id: str, queue: asyncio.Queue[Snapshot]) -> None:
        queues = self._subscribers.get(task_id)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[task_id]

    def subscriber_count(self, task_id: str) -> int:
        return len(self._subscribers.get(task_id, ()))

    async def publish(self, task_id: str, snapshot: Snapshot) -> int:
        """向订阅者推送快照

        Returns:
            收到快照的订阅者数量
        """
        queues = list(self._subscribers.get(task_id, ()))
        for queue in queues:
            if queue.full():
                # 旧快照已被新快照覆盖
                queue.get_nowait()
                log.debug("live_snapshot_coalesced", task_id=task_id)
            queue.put_nowait(snapshot)
        return len(queues)
