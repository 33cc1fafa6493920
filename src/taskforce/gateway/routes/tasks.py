"""任务查询 / 编辑 / 删除路由

GET /api/tasks: 可见任务列表，支持 status / search / overdue / created_by_me 筛选。
GET /api/tasks/summary: 调用者创建的任务统计。
GET /api/tasks/{task_id}: 任务详情，含历史、评论、附件。
PATCH /api/tasks/{task_id}: employer/admin 编辑字段。
DELETE /api/tasks/{task_id}: employer/admin 物理删除。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from taskforce.core.models import Actor, TaskFieldsUpdate, TaskStatus

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService
from .serializers import attachment_to_dict, comment_to_dict, entry_to_dict, task_to_dict

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[dict]


class AssignmentSummary(BaseModel):
    """调用者创建的任务统计"""

    active: int
    completed: int


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    search: str | None = Query(default=None, description="标题或执行人 email"),
    overdue: bool = Query(default=False, description="仅逾期任务"),
    created_by_me: bool = Query(default=False, description="仅本人创建"),
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """查询调用者可见的任务，按 created_at 倒序"""
    tasks = await service.list_tasks_visible_to(
        actor,
        status=status,
        search=search,
        overdue=overdue,
        created_by_me=created_by_me,
    )
    return TaskListResponse(tasks=[task_to_dict(t) for t in tasks])


@router.get("/api/tasks/summary", response_model=AssignmentSummary)
async def assignment_summary(
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    return AssignmentSummary(**await service.assignment_summary(actor))


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """查询任务详情，包含历史、评论和附件"""
    task = await service.get_task(actor, task_id)
    history = await service.get_task_history(actor, task_id)
    comments = await service.list_task_comments(actor, task_id)
    attachments = await service.list_task_attachments(actor, task_id)

    return {
        "task": task_to_dict(task),
        "history": [entry_to_dict(e) for e in history],
        "comments": [comment_to_dict(c) for c in comments],
        "attachments": [attachment_to_dict(a) for a in attachments],
    }


@router.patch("/api/tasks/{task_id}")
async def update_task_fields(
    task_id: str,
    body: TaskFieldsUpdate,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """编辑任务字段（未提供的字段保持不变）"""
    task = await service.update_task_fields(actor, task_id, body)
    return {"task": task_to_dict(task)}


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    """物理删除任务及其历史、评论、附件"""
    await service.delete_task(actor, task_id)
    return {"task_id": task_id, "deleted": True}
