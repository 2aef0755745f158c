"""StoreConfig 环境变量加载测试"""

from pathlib import Path

import pytest
from dodos.core import StoreConfig, load_store_config
from dodos.core.config import DEFAULT_STORAGE_KEY
from pydantic import ValidationError
from structlog.testing import capture_logs

_ENV_VARS = (
    "DODOS_DATA_DIR",
    "DODOS_STORAGE_KEY",
    "DODOS_DEBUG_EVENTS",
    "DODOS_QUEUE_MAXSIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadStoreConfig:
    """load_store_config"""

    def test_defaults(self):
        config = load_store_config()
        assert config.data_dir == Path("data")
        assert config.storage_key == DEFAULT_STORAGE_KEY == "todos-reframe"
        assert config.debug_events is False
        assert config.queue_maxsize == 0

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DODOS_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("DODOS_STORAGE_KEY", "my-todos")
        monkeypatch.setenv("DODOS_DEBUG_EVENTS", "true")
        monkeypatch.setenv("DODOS_QUEUE_MAXSIZE", "16")
        config = load_store_config()
        assert config.data_dir == tmp_path
        assert config.storage_key == "my-todos"
        assert config.debug_events is True
        assert config.queue_maxsize == 16

    def test_debug_events_falsey_value(self, monkeypatch):
        monkeypatch.setenv("DODOS_DEBUG_EVENTS", "off")
        assert load_store_config().debug_events is False

    @pytest.mark.parametrize("value", ["abc", "-3"])
    def test_invalid_queue_maxsize_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("DODOS_QUEUE_MAXSIZE", value)
        with capture_logs() as logs:
            config = load_store_config()
        assert config.queue_maxsize == 0
        assert logs[0]["event"] == "invalid_queue_maxsize_config"
        assert logs[0]["value"] == value


class TestStoreConfigModel:
    """StoreConfig 字段约束"""

    def test_empty_storage_key_rejected(self):
        with pytest.raises(ValidationError):
            StoreConfig(storage_key="")

    def test_negative_queue_maxsize_rejected(self):
        with pytest.raises(ValidationError):
            StoreConfig(queue_maxsize=-1)
