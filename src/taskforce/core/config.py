"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、SSE 心跳间隔、评论预览长度等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKFORCE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKFORCE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskforce.db"),
    )


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("TASKFORCE_SSE_HEARTBEAT_INTERVAL", "15")
)

# 评论预览截断长度（写入 Comment 历史条目的 detail）
COMMENT_PREVIEW_LENGTH: int = 30

# 任务标题最大长度
TITLE_MAX_LENGTH: int = 200

# 默认分类
DEFAULT_CATEGORY: str = "General"
