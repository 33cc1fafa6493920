"""HTTP 协作方客户端

HttpDirectoryClient 同时实现 Directory 与 TeamRegistry；
HttpNotificationSink 实现 NotificationSink。
连接失败、超时、5xx 统一包装为 DependencyUnavailableError，404 视为不存在。
"""

from typing import Any

import httpx
import structlog

from taskforce.core.exceptions import DependencyUnavailableError
from taskforce.core.models import Employee, Notice, Team

log = structlog.get_logger()

# 健康检查超时（应快速响应）
HEALTH_CHECK_TIMEOUT_S = 2


class _HttpCollaborator:
    """共享的 httpx.AsyncClient 生命周期与错误映射"""

    dependency = "collaborator"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 服务基础 URL
            api_key: 访问密钥（Bearer）
            timeout_s: 请求超时（秒）
            transport: 可替换的传输层（测试中使用 httpx.MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response | None:
        """发送请求；404 返回 None，其余失败抛出 DependencyUnavailableError"""
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log.warning(
                "collaborator_request_failed",
                dependency=self.dependency,
                path=path,
                error_type=type(e).__name__,
            )
            raise DependencyUnavailableError(self.dependency, e) from e

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            log.warning(
                "collaborator_bad_status",
                dependency=self.dependency,
                path=path,
                status_code=resp.status_code,
            )
            raise DependencyUnavailableError(
                self.dependency,
                RuntimeError(f"HTTP {resp.status_code}"),
            )
        return resp

    async def health_check(self) -> bool:
        """检查服务可达性（不抛出异常）"""
        try:
            resp = await self._client.get("/health", timeout=HEALTH_CHECK_TIMEOUT_S)
            return resp.status_code == 200
        except httpx.HTTPError as e:
            log.debug("health_check_failed", dependency=self.dependency, error=str(e))
            return False


class HttpDirectoryClient(_HttpCollaborator):
    """员工目录 + 团队注册表 HTTP 客户端"""

    dependency = "directory"

    async def get_employee(self, tenant_id: str, email: str) -> Employee | None:
        resp = await self._request("GET", f"/tenants/{tenant_id}/employees/{email}")
        if resp is None:
            return None
        return Employee.model_validate(resp.json())

    async def list_employees(self, tenant_id: str) -> list[Employee]:
        resp = await self._request("GET", f"/tenants/{tenant_id}/employees")
        if resp is None:
            return []
        return [Employee.model_validate(item) for item in resp.json()]

    async def get_team(self, tenant_id: str, team_id: str) -> Team | None:
        resp = await self._request("GET", f"/tenants/{tenant_id}/teams/{team_id}")
        if resp is None:
            return None
        return Team.model_validate(resp.json())

    async def list_teams(self, tenant_id: str) -> list[Team]:
        resp = await self._request("GET", f"/tenants/{tenant_id}/teams")
        if resp is None:
            return []
        return [Team.model_validate(item) for item in resp.json()]


class HttpNotificationSink(_HttpCollaborator):
    """通知服务 HTTP 客户端"""

    dependency = "notification_sink"

    async def send(self, notice: Notice) -> None:
        resp = await self._request(
            "POST",
            f"/tenants/{notice.tenant_id}/notices",
            json=notice.model_dump(mode="json"),
        )
        if resp is None:
            raise DependencyUnavailableError(
                self.dependency,
                RuntimeError("notice endpoint not found"),
            )
        log.debug("notice_sent", task_id=notice.task_id, target_email=notice.target_email)
