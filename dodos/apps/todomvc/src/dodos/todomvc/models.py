"""Todo 应用数据模型

AppState 是唯一的应用状态值，所有状态更新都通过事件整体替换。
todos 按 id 升序排列（id 时间有序，即创建顺序）。
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from .ids import new_todo_id


class Showing(StrEnum):
    """列表筛选条件"""

    ALL = "all"
    ACTIVE = "active"
    DONE = "done"


class Task(BaseModel):
    """单条待办"""

    # model_copy(update=...) 不做校验，再次校验时需要重新检查字段
    model_config = ConfigDict(frozen=True, revalidate_instances="always")

    id: StrictStr = Field(description="唯一标识，UUID 格式的单调 ULID")
    title: StrictStr = Field(description="标题")
    done: StrictBool = Field(default=False, description="是否已完成")


class AppState(BaseModel):
    """应用状态"""

    model_config = ConfigDict(frozen=True, revalidate_instances="always")

    todos: dict[StrictStr, Task] = Field(default_factory=dict, description="task id -> Task")
    showing: Showing = Field(default=Showing.ALL, description="当前筛选条件")


def default_state() -> AppState:
    return AppState()


def sort_todos(todos: Mapping[str, Task]) -> dict[str, Task]:
    """返回按 id 升序排列的新 dict"""
    return {key: todos[key] for key in sorted(todos)}


def seed_todos() -> dict[str, Task]:
    """首次启动时的两条示例待办"""
    first, second = new_todo_id(), new_todo_id()
    return {
        first: Task(id=first, title="Foo", done=False),
        second: Task(id=second, title="Bar", done=True),
    }


def todo_id_violations(state: Any) -> list[str]:
    """检查每条待办的 id 与其 key 一致

    只检查结构上可读的条目，字段类型错误由模型校验负责报告。
    """
    todos = getattr(state, "todos", None)
    if not isinstance(todos, Mapping):
        return []
    errors = []
    for key, task in todos.items():
        task_id = getattr(task, "id", None)
        if task_id is None and isinstance(task, Mapping):
            task_id = task.get("id")
        if task_id is not None and task_id != key:
            errors.append(f"todos.{key}.id: 与 key 不一致（实际为 {task_id!r}）")
    return errors
