"""全局 pytest 配置 -- 内存持久化 + 已初始化应用 fixture"""

from pathlib import Path

import pytest
from dodos.core import StoreConfig
from dodos.todomvc import MemoryLocalStore, TodoApp, create_app


@pytest.fixture
def store_config(tmp_path: Path) -> StoreConfig:
    """指向临时目录的 Store 配置"""
    return StoreConfig(data_dir=tmp_path / "data")


@pytest.fixture
def local_store() -> MemoryLocalStore:
    """空的内存 LocalStore"""
    return MemoryLocalStore()


@pytest.fixture
def todo_app(local_store: MemoryLocalStore, store_config: StoreConfig) -> TodoApp:
    """已完成 initialize 的应用（两条示例待办）"""
    return create_app(local_store=local_store, config=store_config)
