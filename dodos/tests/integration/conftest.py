"""集成测试共享 fixture"""

import pytest
from dodos.core import StoreConfig
from dodos.todomvc import MemoryLocalStore, PersistenceBridge, TodoApp, create_app, new_todo_id
from dodos.todomvc.models import Task


@pytest.fixture
def empty_app(store_config: StoreConfig) -> TodoApp:
    """状态为 {todos: {}, showing: all} 的应用（未执行 initialize）"""
    return create_app(local_store=MemoryLocalStore(), config=store_config, initialize=False)


@pytest.fixture
def two_task_app(store_config: StoreConfig) -> TodoApp:
    """持久化数据为 {A: 未完成, B: 已完成} 并完成 initialize 的应用"""
    local_store = MemoryLocalStore()
    a, b = new_todo_id(), new_todo_id()
    PersistenceBridge(local_store, store_config.storage_key).save(
        {
            a: Task(id=a, title="A", done=False),
            b: Task(id=b, title="B", done=True),
        }
    )
    return create_app(local_store=local_store, config=store_config)
