"""协作方工厂 -- 根据 DirectoryConfig 构建实现"""

import structlog

from .client import HttpDirectoryClient, HttpNotificationSink
from .config import DirectoryConfig
from .protocols import Directory, NotificationSink, TeamRegistry
from .static import RecordingNotificationSink, StaticDirectory

log = structlog.get_logger()


class Collaborators:
    """协作方实例组"""

    def __init__(
        self,
        directory: Directory,
        teams: TeamRegistry,
        notifier: NotificationSink,
    ) -> None:
        self.directory = directory
        self.teams = teams
        self.notifier = notifier

    async def aclose(self) -> None:
        """关闭底层 HTTP 连接（同一实例只关闭一次）"""
        closed: set[int] = set()
        for component in (self.directory, self.teams, self.notifier):
            if id(component) in closed:
                continue
            closed.add(id(component))
            await component.aclose()


def create_collaborators(config: DirectoryConfig) -> Collaborators:
    """按配置模式创建 Directory / TeamRegistry / NotificationSink"""
    if config.mode == "http":
        directory = HttpDirectoryClient(
            base_url=config.base_url,
            api_key=config.api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    elif config.seed_path:
        directory = StaticDirectory.from_seed_file(config.seed_path)
    else:
        directory = StaticDirectory()

    if config.notify_url:
        notifier = HttpNotificationSink(
            base_url=config.notify_url,
            api_key=config.api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    else:
        notifier = RecordingNotificationSink()

    log.info(
        "collaborators_created",
        mode=config.mode,
        notifier=type(notifier).__name__,
    )
    return Collaborators(directory=directory, teams=directory, notifier=notifier)
