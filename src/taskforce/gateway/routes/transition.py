"""状态流转路由

POST /api/tasks/{task_id}/transition: 推进任务状态。
- 200: 流转成功
- 403: 非执行人且非 employer/admin
- 404: 任务不存在
- 409: 期望状态不符、已处于目标状态或并发冲突
- 422: 非法流转
409/422 响应附带任务当前快照，供乐观更新的客户端回滚。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from taskforce.core.exceptions import TaskStatusConflictError, TaskValidationError
from taskforce.core.models import Actor, TaskStatus

from ..deps import get_actor, get_task_service
from ..errors import error_body, status_code_for
from ..services.task_service import TaskService
from .serializers import task_to_dict

router = APIRouter()


class TransitionRequest(BaseModel):
    """流转请求体"""

    status: TaskStatus = Field(description="目标状态")
    expected_status: TaskStatus | None = Field(
        default=None,
        description="客户端认为的当前状态（拖拽来源列）",
    )


@router.post("/api/tasks/{task_id}/transition")
async def transition_task(
    task_id: str,
    body: TransitionRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    try:
        task = await service.transition_task_status(
            actor,
            task_id,
            body.status,
            expected_status=body.expected_status,
        )
    except (TaskStatusConflictError, TaskValidationError) as e:
        content = error_body(e)
        # 能走到冲突 / 合法性检查说明调用者已通过授权，任务对其可见
        current = await service.get_task(actor, task_id)
        content["task"] = task_to_dict(current)
        return JSONResponse(status_code=status_code_for(e), content=content)

    return {"task": task_to_dict(task)}
