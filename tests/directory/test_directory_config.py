"""DirectoryConfig 环境变量加载 + 协作方工厂测试"""

import json
import os
from pathlib import Path

import pytest
from taskforce.directory import (
    HttpDirectoryClient,
    HttpNotificationSink,
    RecordingNotificationSink,
    StaticDirectory,
    create_collaborators,
    load_directory_config,
)
from taskforce.directory.config import DirectoryConfig

_ENV_KEYS = [
    "TASKFORCE_DIRECTORY_MODE",
    "TASKFORCE_DIRECTORY_URL",
    "TASKFORCE_DIRECTORY_KEY",
    "TASKFORCE_DIRECTORY_TIMEOUT_S",
    "TASKFORCE_DIRECTORY_SEED",
    "TASKFORCE_NOTIFY_URL",
]


@pytest.fixture(autouse=True)
def clean_env():
    saved = {key: os.environ.pop(key, None) for key in _ENV_KEYS}
    yield
    for key, value in saved.items():
        os.environ.pop(key, None)
        if value is not None:
            os.environ[key] = value


class TestLoadDirectoryConfig:
    def test_defaults(self):
        config = load_directory_config()
        assert config.mode == "static"
        assert config.timeout_s == 5.0
        assert config.api_key.get_secret_value() == ""
        assert config.notify_url is None

    def test_env_overrides(self):
        os.environ["TASKFORCE_DIRECTORY_MODE"] = "http"
        os.environ["TASKFORCE_DIRECTORY_URL"] = "http://dir.internal"
        os.environ["TASKFORCE_DIRECTORY_KEY"] = "k-123"
        os.environ["TASKFORCE_DIRECTORY_TIMEOUT_S"] = "2.5"
        os.environ["TASKFORCE_NOTIFY_URL"] = "http://notify.internal"

        config = load_directory_config()

        assert config.mode == "http"
        assert config.base_url == "http://dir.internal"
        assert config.api_key.get_secret_value() == "k-123"
        assert "k-123" not in repr(config)
        assert config.timeout_s == 2.5
        assert config.notify_url == "http://notify.internal"

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_invalid_timeout_falls_back(self, value: str):
        """非法超时值记录警告并使用默认值"""
        os.environ["TASKFORCE_DIRECTORY_TIMEOUT_S"] = value
        assert load_directory_config().timeout_s == 5.0


class TestCreateCollaborators:
    async def test_static_mode_with_seed(self, tmp_path: Path):
        seed = tmp_path / "seed.json"
        seed.write_text(
            json.dumps({"tenants": {"acme": {"employees": [{"email": "a@acme.com"}]}}}),
            encoding="utf-8",
        )
        collaborators = create_collaborators(DirectoryConfig(seed_path=str(seed)))

        assert isinstance(collaborators.directory, StaticDirectory)
        assert collaborators.teams is collaborators.directory
        assert isinstance(collaborators.notifier, RecordingNotificationSink)
        assert await collaborators.directory.get_employee("acme", "a@acme.com") is not None
        await collaborators.aclose()

    async def test_http_mode(self):
        collaborators = create_collaborators(
            DirectoryConfig(mode="http", notify_url="http://notify.internal")
        )
        assert isinstance(collaborators.directory, HttpDirectoryClient)
        assert isinstance(collaborators.notifier, HttpNotificationSink)
        await collaborators.aclose()
