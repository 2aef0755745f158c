"""StoreConfig -- 配置加载，可通过环境变量覆盖

环境变量:
    DODOS_DATA_DIR: 本地持久化目录（默认 data）
    DODOS_STORAGE_KEY: todos 持久化使用的固定 key（默认 todos-reframe）
    DODOS_DEBUG_EVENTS: 为每个事件追加 debug interceptor（true/false）
    DODOS_QUEUE_MAXSIZE: 异步事件队列上限（0 表示不限）
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

# todos 的默认持久化 key
DEFAULT_STORAGE_KEY = "todos-reframe"


class StoreConfig(BaseModel):
    """Store 与持久化配置"""

    data_dir: Path = Field(default=Path("data"), description="本地持久化目录")
    storage_key: str = Field(
        default=DEFAULT_STORAGE_KEY,
        min_length=1,
        description="todos 持久化 key",
    )
    debug_events: bool = Field(default=False, description="是否记录每个事件的调试日志")
    queue_maxsize: int = Field(default=0, ge=0, description="异步事件队列上限，0 不限")


def load_store_config() -> StoreConfig:
    """从环境变量加载配置

    非法取值记录 warning 并回退到默认值，不阻塞启动。

    Returns:
        StoreConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("DODOS_DATA_DIR"):
        kwargs["data_dir"] = Path(val)

    if val := os.environ.get("DODOS_STORAGE_KEY"):
        kwargs["storage_key"] = val

    if val := os.environ.get("DODOS_DEBUG_EVENTS"):
        kwargs["debug_events"] = val.strip().lower() in {"1", "true", "yes", "on"}

    if val := os.environ.get("DODOS_QUEUE_MAXSIZE"):
        try:
            maxsize = int(val)
            if maxsize < 0:
                raise ValueError(val)
            kwargs["queue_maxsize"] = maxsize
        except ValueError:
            log.warning(
                "invalid_queue_maxsize_config",
                env_var="DODOS_QUEUE_MAXSIZE",
                value=val,
                fallback=0,
            )

    return StoreConfig(**kwargs)
