"""Todo 数据模型与 id 生成测试"""

import threading
import uuid

import pytest
from dodos.core import model_violations
from dodos.todomvc.ids import MonotonicULID, new_todo_id
from dodos.todomvc.models import (
    AppState,
    Showing,
    Task,
    default_state,
    seed_todos,
    sort_todos,
    todo_id_violations,
)
from pydantic import ValidationError


class TestTask:
    """Task 模型"""

    def test_defaults(self):
        task = Task(id="1", title="Foo")
        assert task.done is False

    def test_strict_fields(self):
        with pytest.raises(ValidationError):
            Task(id="1", title=42)
        with pytest.raises(ValidationError):
            Task(id="1", title="Foo", done="yes")

    def test_frozen(self):
        task = Task(id="1", title="Foo")
        with pytest.raises(ValidationError):
            task.done = True


class TestAppState:
    """AppState 模型"""

    def test_default_state(self):
        state = default_state()
        assert state.todos == {}
        assert state.showing == Showing.ALL

    def test_showing_accepts_only_known_values(self):
        assert AppState(showing="active").showing is Showing.ACTIVE
        with pytest.raises(ValidationError):
            AppState(showing="bogus")

    def test_unvalidated_copy_caught_on_revalidation(self):
        task = Task(id="1", title="Foo")
        state = AppState(todos={"1": task}).model_copy(update={"showing": "bogus"})
        errors = model_violations(AppState, state)
        assert len(errors) == 1
        assert errors[0].startswith("showing:")

    def test_nested_task_violation_location(self):
        bad = Task.model_construct(id="1", title="Foo", done=None)
        errors = model_violations(AppState, AppState.model_construct(todos={"1": bad}))
        assert errors[0].startswith("todos.1.done:")


class TestTodoHelpers:
    """排序、示例数据与 id 一致性检查"""

    def test_sort_todos_orders_by_id(self):
        todos = {key: Task(id=key, title=key) for key in ["c", "a", "b"]}
        assert list(sort_todos(todos)) == ["a", "b", "c"]

    def test_seed_todos(self):
        todos = seed_todos()
        titles = [(task.title, task.done) for task in todos.values()]
        assert titles == [("Foo", False), ("Bar", True)]
        assert list(todos) == sorted(todos)
        assert all(key == task.id for key, task in todos.items())

    def test_id_violations(self):
        state = AppState(todos={"1": Task(id="1", title="ok"), "2": Task(id="3", title="bad")})
        errors = todo_id_violations(state)
        assert len(errors) == 1
        assert errors[0].startswith("todos.2.id:")

    def test_id_violations_ignores_unreadable_state(self):
        assert todo_id_violations(None) == []
        assert todo_id_violations(AppState()) == []


class TestIds:
    """单调 ULID id"""

    def test_uuid_format(self):
        todo_id = new_todo_id()
        assert str(uuid.UUID(todo_id)) == todo_id

    def test_strictly_increasing(self):
        ids = [new_todo_id() for _ in range(500)]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_monotonic_across_threads(self):
        generate = MonotonicULID()
        results: list = []
        lock = threading.Lock()

        def worker():
            local = [int(generate()) for _ in range(200)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(set(results)) == 800
