"""TraceMiddleware -- 为任务路由绑定 trace_id

从 /api/tasks/{task_id}/... 或 /api/stream/task/{task_id} 提取 task_id，
使同一任务的所有日志可以串联检索。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID：26 位 Crockford Base32
_TASK_PATH = re.compile(r"/api/(?:tasks|stream/task)/([0-9A-HJKMNP-TV-Z]{26})(?:/|$)")


def extract_task_id(path: str) -> str | None:
    match = _TASK_PATH.search(path)
    return match.group(1) if match else None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(
                task_id=task_id,
                trace_id=f"trace-{task_id}",
            )
        return await call_next(request)
