"""packages/core 测试配置 -- 以普通 dict 为状态的计数器 Store"""

from typing import Any

import pytest
from dodos.core import Store


def increment(state: dict[str, Any], amount: int = 1) -> dict[str, Any]:
    return {**state, "count": state["count"] + amount}


def noop(state: dict[str, Any]) -> dict[str, Any]:
    return state


def fail(state: dict[str, Any]) -> dict[str, Any]:
    raise RuntimeError("handler 失败")


@pytest.fixture
def counter_store() -> Store:
    """注册了 increment / noop / fail 三个事件的 Store"""
    store = Store({"count": 0, "label": "counter"})
    store.register_state_event("increment", increment)
    store.register_state_event("noop", noop)
    store.register_state_event("fail", fail)
    return store
