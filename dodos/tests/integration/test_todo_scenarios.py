"""端到端场景测试

从空状态出发的增删改流程、两条待办的计数，以及异步分发下的同一流程。
"""

from dodos.todomvc import (
    AppState,
    EventName,
    Showing,
    SubscriptionName,
    TodoApp,
    TodoListPresenter,
    route_changed,
)


class TestCreateToggleClear:
    """空状态 -> 新建 -> 完成 -> 清除"""

    def test_create_toggle_clear(self, empty_app: TodoApp):
        assert empty_app.state == AppState(todos={}, showing=Showing.ALL)

        empty_app.store.dispatch_sync(EventName.CREATE_TODO, "Foo")
        todos = empty_app.state.todos
        assert len(todos) == 1
        ((todo_id, task),) = todos.items()
        assert (task.title, task.done) == ("Foo", False)
        assert task.id == todo_id

        empty_app.store.dispatch_sync(EventName.TOGGLE_DONE, todo_id)
        assert empty_app.state.todos[todo_id].done is True

        empty_app.store.dispatch_sync(EventName.CLEAR_COMPLETED)
        assert empty_app.state.todos == {}

    def test_same_flow_through_async_queue(self, empty_app: TodoApp):
        store = empty_app.store
        store.dispatch(EventName.CREATE_TODO, "Foo")
        store.flush()
        (todo_id,) = empty_app.state.todos
        store.dispatch(EventName.TOGGLE_DONE, todo_id)
        store.dispatch(EventName.CLEAR_COMPLETED)
        store.flush()
        assert empty_app.state.todos == {}


class TestAsyncSession:
    """异步消费者下的完整会话"""

    async def test_async_session(self, empty_app: TodoApp):
        async with empty_app.store as store:
            for title in ["one", "two", "three"]:
                store.dispatch(EventName.CREATE_TODO, title)
            await store.drain()
            titles = [t.title for t in store.read(SubscriptionName.TODOS)]
            assert titles == ["one", "two", "three"]

            store.dispatch(EventName.COMPLETE_ALL_TOGGLE)
            store.dispatch(EventName.SET_SHOWING, Showing.DONE)
            await store.drain()
            assert store.read(SubscriptionName.FOOTER_COUNTS) == (0, 3)
            assert len(store.read(SubscriptionName.VISIBLE_TODOS)) == 3


class TestTwoTasks:
    """{A: 未完成, B: 已完成}"""

    def test_counts(self, two_task_app: TodoApp):
        assert [t.title for t in two_task_app.state.todos.values()] == ["A", "B"]
        assert two_task_app.store.read(SubscriptionName.COMPLETED_COUNT) == 1
        assert two_task_app.store.read(SubscriptionName.FOOTER_COUNTS) == (1, 1)

    def test_render_after_route_change(self, two_task_app: TodoApp):
        with TodoListPresenter(two_task_app.store) as presenter:
            route_changed(two_task_app.store, "#/active")
            view = presenter.snapshot()
        assert [t.title for t in view.visible_todos] == ["A"]
        assert view.items_left == "1 item left"
        assert view.show_clear_completed is True

    def test_persistence_round_trip(self, two_task_app: TodoApp):
        a = next(t.id for t in two_task_app.state.todos.values() if t.title == "A")
        two_task_app.store.dispatch_sync(EventName.TOGGLE_DONE, a)
        assert two_task_app.bridge.load() == two_task_app.state.todos
