"""Delegate 团队管理路由

PUT /api/tasks/{task_id}/team: 负责人替换执行人列表（负责人保持在首位）。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from taskforce.core.models import Actor

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService
from .serializers import task_to_dict

router = APIRouter()


class TeamRequest(BaseModel):
    """新的执行人列表（必须包含负责人）"""

    assignee_emails: list[str] = Field(description="新的执行人列表")


@router.put("/api/tasks/{task_id}/team")
async def manage_team(
    task_id: str,
    body: TeamRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    task = await service.manage_task_team(actor, task_id, body.assignee_emails)
    return {"task": task_to_dict(task)}
