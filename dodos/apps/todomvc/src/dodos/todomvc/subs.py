"""订阅目录 -- 视图层读取的派生数据

根节点: sorted-todos（原始 todos 映射）、showing（当前筛选）
派生节点:
    todos            <- sorted-todos                 按 id 排序的列表
    visible-todos    <- todos, showing               按筛选条件过滤
    all-complete     <- todos                        全部完成（空列表为 True）
    completed-count  <- todos                        已完成数量
    footer-counts    <- todos, completed-count       (剩余数量, 已完成数量)
"""

from enum import StrEnum
from typing import Any

from dodos.core import Store

from .models import AppState, Showing, Task


class SubscriptionName(StrEnum):
    """订阅查询名"""

    SORTED_TODOS = "sorted-todos"
    SHOWING = "showing"
    TODOS = "todos"
    VISIBLE_TODOS = "visible-todos"
    ALL_COMPLETE = "all-complete"
    COMPLETED_COUNT = "completed-count"
    FOOTER_COUNTS = "footer-counts"


def sorted_todos(state: AppState, _query: Any) -> dict[str, Task]:
    return state.todos


def showing(state: AppState, _query: Any) -> Showing:
    return state.showing


def todo_list(todos: dict[str, Task], _query: Any) -> list[Task]:
    return [todos[key] for key in sorted(todos)]


def visible_todos(inputs: list[Any], _query: Any) -> list[Task]:
    todos, current = inputs
    if current == Showing.ACTIVE:
        return [task for task in todos if not task.done]
    if current == Showing.DONE:
        return [task for task in todos if task.done]
    return list(todos)


def all_complete(todos: list[Task], _query: Any) -> bool:
    return all(task.done for task in todos)


def completed_count(todos: list[Task], _query: Any) -> int:
    return sum(1 for task in todos if task.done)


def footer_counts(inputs: list[Any], _query: Any) -> tuple[int, int]:
    todos, completed = inputs
    return len(todos) - completed, completed


def register_subscriptions(store: Store) -> None:
    """向 Store 注册全部订阅"""
    store.register_subscription(SubscriptionName.SORTED_TODOS, sorted_todos)
    store.register_subscription(SubscriptionName.SHOWING, showing)
    store.register_subscription(
        SubscriptionName.TODOS, todo_list, SubscriptionName.SORTED_TODOS
    )
    store.register_subscription(
        SubscriptionName.VISIBLE_TODOS,
        visible_todos,
        [SubscriptionName.TODOS, SubscriptionName.SHOWING],
    )
    store.register_subscription(
        SubscriptionName.ALL_COMPLETE, all_complete, SubscriptionName.TODOS
    )
    store.register_subscription(
        SubscriptionName.COMPLETED_COUNT, completed_count, SubscriptionName.TODOS
    )
    store.register_subscription(
        SubscriptionName.FOOTER_COUNTS,
        footer_counts,
        [SubscriptionName.TODOS, SubscriptionName.COMPLETED_COUNT],
    )
