"""异常 -> HTTP 错误响应映射

领域异常统一渲染为 {"error": {"code", "message"}}。
"""

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse
from taskforce.core.exceptions import (
    DependencyUnavailableError,
    PermissionDeniedError,
    TaskForceError,
    TaskNotFoundError,
    TaskStatusConflictError,
    TaskTeamConflictError,
    TaskValidationError,
    UnauthenticatedError,
)

log = structlog.get_logger()

STATUS_BY_ERROR: dict[type[TaskForceError], int] = {
    TaskValidationError: 422,
    UnauthenticatedError: 401,
    PermissionDeniedError: 403,
    TaskNotFoundError: 404,
    TaskStatusConflictError: 409,
    TaskTeamConflictError: 409,
    DependencyUnavailableError: 503,
}


def status_code_for(error: TaskForceError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def error_body(error: TaskForceError) -> dict:
    return {"error": {"code": error.code, "message": error.message}}


async def taskforce_error_handler(request: Request, exc: TaskForceError) -> JSONResponse:
    """领域异常处理器"""
    status_code = status_code_for(exc)
    if isinstance(exc, DependencyUnavailableError):
        log.warning(
            "dependency_unavailable",
            dependency=exc.dependency,
            path=request.url.path,
        )
    else:
        log.info(
            "request_rejected",
            code=exc.code,
            status_code=status_code,
            path=request.url.path,
        )
    return JSONResponse(status_code=status_code, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskForceError, taskforce_error_handler)
