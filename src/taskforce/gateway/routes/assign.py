"""任务指派路由

POST /api/tasks: 创建任务（解析执行人并通知）。
GET /api/assignees: 调用者可以指派的员工列表。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from taskforce.core.models import Actor, TaskDraft

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService
from .serializers import employee_to_dict, task_to_dict

router = APIRouter()


class AssigneesResponse(BaseModel):
    """可指派员工列表"""

    employees: list[dict] = Field(default_factory=list)


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: TaskDraft,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """创建任务

    - 201: 创建成功，返回任务
    - 403: 无权指派所选员工或团队
    - 422: 标题为空、执行人为空、团队不存在等
    - 503: 员工目录或团队注册表不可用
    """
    task = await service.create_task(actor, body)
    return JSONResponse(status_code=201, content={"task": task_to_dict(task)})


@router.get("/api/assignees", response_model=AssigneesResponse)
async def list_assignees(
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """调用者可以在 UI 选择器中看到的员工"""
    employees = await service.assignable_employees(actor)
    return AssigneesResponse(employees=[employee_to_dict(e) for e in employees])
