"""响应序列化工具"""

from taskforce.core.models import Attachment, Comment, Employee, HistoryEntry, Task


def task_to_dict(task: Task) -> dict:
    data = task.model_dump(mode="json")
    data["lead_email"] = task.lead_email
    return data


def entry_to_dict(entry: HistoryEntry) -> dict:
    return entry.model_dump(mode="json")


def comment_to_dict(comment: Comment) -> dict:
    return comment.model_dump(mode="json")


def attachment_to_dict(attachment: Attachment) -> dict:
    return attachment.model_dump(mode="json")


def employee_to_dict(employee: Employee) -> dict:
    return employee.model_dump(mode="json", include={"email", "name", "role"})
