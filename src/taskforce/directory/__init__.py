"""TaskForce Directory -- 外部协作方抽象层

员工目录、团队注册表与通知下发的公开接口导出。
"""

from .client import HttpDirectoryClient, HttpNotificationSink
from .config import DirectoryConfig, load_directory_config
from .factory import Collaborators, create_collaborators
from .protocols import Directory, NotificationSink, TeamRegistry
from .static import RecordingNotificationSink, StaticDirectory

__all__ = [
    "Directory",
    "TeamRegistry",
    "NotificationSink",
    "HttpDirectoryClient",
    "HttpNotificationSink",
    "StaticDirectory",
    "RecordingNotificationSink",
    "DirectoryConfig",
    "load_directory_config",
    "Collaborators",
    "create_collaborators",
]
