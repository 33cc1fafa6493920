"""DirectoryConfig -- 外部协作方配置加载

从环境变量加载配置，不硬编码目录服务地址。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class DirectoryConfig(BaseModel):
    """协作方配置 -- 从环境变量加载

    环境变量:
        TASKFORCE_DIRECTORY_MODE: 运行模式（http/static）
        TASKFORCE_DIRECTORY_URL: 目录服务地址（http 模式）
        TASKFORCE_DIRECTORY_KEY: 目录服务访问密钥
        TASKFORCE_DIRECTORY_TIMEOUT_S: 调用超时（秒，默认 5）
        TASKFORCE_DIRECTORY_SEED: static 模式的 JSON 种子文件
        TASKFORCE_NOTIFY_URL: 通知服务地址（为空时使用本地记录）
    """

    mode: Literal["http", "static"] = Field(
        default="static",
        description="协作方运行模式：http / static",
    )
    base_url: str = Field(
        default="http://localhost:8100",
        description="目录服务基础 URL",
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="目录服务访问密钥",
    )
    timeout_s: float = Field(
        default=5.0,
        gt=0,
        description="调用超时（秒）",
    )
    seed_path: str | None = Field(
        default=None,
        description="static 模式的 JSON 种子文件路径",
    )
    notify_url: str | None = Field(
        default=None,
        description="通知服务基础 URL",
    )


def load_directory_config() -> DirectoryConfig:
    """从环境变量加载协作方配置

    Returns:
        DirectoryConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKFORCE_DIRECTORY_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("TASKFORCE_DIRECTORY_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("TASKFORCE_DIRECTORY_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("TASKFORCE_DIRECTORY_TIMEOUT_S"):
        try:
            timeout = float(val)
            if timeout <= 0:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKFORCE_DIRECTORY_TIMEOUT_S",
                value=val,
                fallback=5.0,
            )

    if val := os.environ.get("TASKFORCE_DIRECTORY_SEED"):
        kwargs["seed_path"] = val

    if val := os.environ.get("TASKFORCE_NOTIFY_URL"):
        kwargs["notify_url"] = val

    return DirectoryConfig(**kwargs)
