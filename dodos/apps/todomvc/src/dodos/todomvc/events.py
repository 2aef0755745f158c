"""事件目录 -- 待办的增删改与筛选

todo 相关事件经过 path("todos") 收窄，handler 只处理 todos 映射：
    [record_effect(LOCAL_STORE), validate, path("todos")]
after 阶段依次为：拼回完整状态 -> 结构校验 -> 登记持久化 effect。

针对不存在 id 的 toggle/update/delete 为静默空操作（记录 warning，状态不变）。
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

import structlog
from dodos.core import (
    STATE,
    Store,
    inject_coeffect,
    path,
    record_effect,
    schema_check,
    validate,
)

from .ids import new_todo_id
from .models import AppState, Showing, Task, seed_todos, todo_id_violations
from .persistence import PersistenceBridge

log = structlog.get_logger()

# 持久化 effect 名与初始化时注入的 coeffect 名
LOCAL_STORE = "local_store"
LOCAL_STORE_TODOS = "local_store_todos"

Todos = Mapping[str, Task]

_SHOWING_VALUES = frozenset(s.value for s in Showing)


class EventName(StrEnum):
    """应用事件名"""

    INITIALIZE = "initialize"
    TOGGLE_DONE = "toggle-done"
    CREATE_TODO = "create-todo"
    UPDATE_TODO = "update-todo"
    DELETE_TODO = "delete-todo"
    COMPLETE_ALL_TOGGLE = "complete-all-toggle"
    CLEAR_COMPLETED = "clear-completed"
    SET_SHOWING = "set-showing"


def _missing(event: EventName, todo_id: Any) -> None:
    log.warning("todo_not_found", event_name=str(event), todo_id=todo_id)


def initialize(coeffects: Mapping[str, Any]) -> dict[str, Any]:
    """整体替换状态：使用持久化的 todos（包括空映射）

    没有可用的持久化数据时写入两条示例，并登记持久化 effect，
    使示例 id 在下次启动时保持不变。
    """
    persisted = coeffects.get(LOCAL_STORE_TODOS)
    todos = seed_todos() if persisted is None else persisted
    log.info("app_initialized", todo_count=len(todos), seeded=persisted is None)
    effects: dict[str, Any] = {STATE: AppState(todos=todos, showing=Showing.ALL)}
    if persisted is None:
        effects[LOCAL_STORE] = todos
    return effects


def toggle_done(todos: Todos, todo_id: str) -> Todos:
    task = todos.get(todo_id)
    if task is None:
        _missing(EventName.TOGGLE_DONE, todo_id)
        return todos
    return {**todos, todo_id: task.model_copy(update={"done": not task.done})}


def create_todo(todos: Todos, title: str) -> Todos:
    todo_id = new_todo_id()
    # 不在此处校验字段，交给 validate interceptor 统一报告
    task = Task.model_construct(id=todo_id, title=title, done=False)
    return {**todos, todo_id: task}


def update_todo(todos: Todos, todo_id: str, title: str) -> Todos:
    task = todos.get(todo_id)
    if task is None:
        _missing(EventName.UPDATE_TODO, todo_id)
        return todos
    return {**todos, todo_id: task.model_copy(update={"title": title})}


def delete_todo(todos: Todos, todo_id: str) -> Todos:
    if todo_id not in todos:
        _missing(EventName.DELETE_TODO, todo_id)
        return todos
    return {key: task for key, task in todos.items() if key != todo_id}


def complete_all_toggle(todos: Todos) -> Todos:
    """存在未完成项时全部标记完成，否则全部标记未完成"""
    target = not all(task.done for task in todos.values())
    if all(task.done == target for task in todos.values()):
        return todos
    return {
        key: task if task.done == target else task.model_copy(update={"done": target})
        for key, task in todos.items()
    }


def clear_completed(todos: Todos) -> Todos:
    remaining = {key: task for key, task in todos.items() if not task.done}
    if len(remaining) == len(todos):
        return todos
    return remaining


def set_showing(state: AppState, new_filter: Any) -> AppState:
    """替换筛选条件（作用于完整状态，不经过 path）

    非法取值原样写入，由 validate interceptor 拒绝提交。
    """
    if isinstance(new_filter, str) and new_filter in _SHOWING_VALUES:
        new_filter = Showing(new_filter)
    if state.showing == new_filter:
        return state
    return state.model_copy(update={"showing": new_filter})


def register_events(store: Store, bridge: PersistenceBridge) -> None:
    """向 Store 注册全部事件与持久化 effect"""
    validate_state = validate(schema_check(AppState, [todo_id_violations]))
    persist_todos = record_effect(LOCAL_STORE, lambda state: state.todos)
    todo_interceptors = [persist_todos, validate_state, path("todos")]

    store.register_effect(LOCAL_STORE, bridge.save)

    store.register_effects_event(
        EventName.INITIALIZE,
        initialize,
        [inject_coeffect(LOCAL_STORE_TODOS, bridge.load), validate_state],
    )
    store.register_state_event(EventName.TOGGLE_DONE, toggle_done, todo_interceptors)
    store.register_state_event(EventName.CREATE_TODO, create_todo, todo_interceptors)
    store.register_state_event(EventName.UPDATE_TODO, update_todo, todo_interceptors)
    store.register_state_event(EventName.DELETE_TODO, delete_todo, todo_interceptors)
    store.register_state_event(
        EventName.COMPLETE_ALL_TOGGLE, complete_all_toggle, todo_interceptors
    )
    store.register_state_event(EventName.CLEAR_COMPLETED, clear_completed, todo_interceptors)
    store.register_state_event(EventName.SET_SHOWING, set_showing, [validate_state])
