"""TaskForce 异常体系

所有领域错误都继承 TaskForceError，携带稳定的 code，
由 gateway 统一映射为 HTTP 错误响应。
"""


class TaskForceError(Exception):
    """基础异常"""

    code: str = "TASKFORCE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskForceError):
    """输入不合法（空标题、空执行人集合、非法状态流转等）"""

    code = "VALIDATION_ERROR"


class PermissionDeniedError(TaskForceError):
    """操作者无权执行该操作"""

    code = "PERMISSION_DENIED"


class TaskNotFoundError(TaskForceError):
    """任务不存在（或不属于当前租户）"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class TaskStatusConflictError(TaskForceError):
    """状态 compare-and-set 失败：当前状态与期望状态不一致"""

    code = "TASK_STATUS_CONFLICT"

    def __init__(
        self,
        task_id: str,
        expected_status: str | None,
        actual_status: str | None,
    ) -> None:
        super().__init__(
            f"Task {task_id} status conflict: expected {expected_status}, "
            f"actual {actual_status}"
        )
        self.task_id = task_id
        self.expected_status = expected_status
        self.actual_status = actual_status


class TaskTeamConflictError(TaskForceError):
    """执行人列表 compare-and-set 失败：读取之后已被其他请求修改"""

    code = "TASK_TEAM_CONFLICT"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} team was changed concurrently, reload and retry")
        self.task_id = task_id


class DependencyUnavailableError(TaskForceError):
    """外部协作方（Directory / Team Registry / Notification Sink）不可用"""

    code = "DEPENDENCY_UNAVAILABLE"

    def __init__(self, dependency: str, original_error: Exception | None = None) -> None:
        """
        Args:
            dependency: 协作方名称（directory / team_registry / notification_sink）
            original_error: 原始异常
        """
        detail = f" -- {original_error}" if original_error is not None else ""
        super().__init__(f"{dependency} unavailable{detail}")
        self.dependency = dependency
        self.original_error = original_error


class UnauthenticatedError(TaskForceError):
    """请求缺少上游认证代理注入的身份信息"""

    code = "UNAUTHENTICATED"
