"""评论 / 附件路由

POST /api/tasks/{task_id}/comments: 追加评论。
POST /api/tasks/{task_id}/attachments: 追加附件引用（文件由外部存储托管）。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import JSONResponse
from taskforce.core.models import Actor

from ..deps import get_actor, get_task_service
from ..services.task_service import TaskService
from .serializers import attachment_to_dict, comment_to_dict

router = APIRouter()


class CommentRequest(BaseModel):
    text: str


class AttachmentRequest(BaseModel):
    name: str
    url: str


@router.post("/api/tasks/{task_id}/comments", status_code=201)
async def add_comment(
    task_id: str,
    body: CommentRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    comment = await service.add_task_comment(actor, task_id, body.text)
    return JSONResponse(status_code=201, content={"comment": comment_to_dict(comment)})


@router.post("/api/tasks/{task_id}/attachments", status_code=201)
async def add_attachment(
    task_id: str,
    body: AttachmentRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    attachment = await service.add_task_attachment(actor, task_id, body.name, body.url)
    return JSONResponse(
        status_code=201,
        content={"attachment": attachment_to_dict(attachment)},
    )
