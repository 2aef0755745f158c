"""dodos todomvc -- 基于 dodos.core 的待办应用

apps/todomvc 的公开接口导出。
"""

from .app import TodoApp, create_app
from .events import EventName, register_events
from .ids import new_todo_id
from .models import AppState, Showing, Task, default_state, seed_todos
from .persistence import FileLocalStore, LocalStore, MemoryLocalStore, PersistenceBridge
from .routing import parse_filter, route_changed
from .subs import SubscriptionName, register_subscriptions
from .view import TodoListPresenter, TodoListView, submit_edit, submit_new_title

__all__ = [
    "TodoApp",
    "create_app",
    "EventName",
    "register_events",
    "SubscriptionName",
    "register_subscriptions",
    "AppState",
    "Task",
    "Showing",
    "default_state",
    "seed_todos",
    "new_todo_id",
    "LocalStore",
    "MemoryLocalStore",
    "FileLocalStore",
    "PersistenceBridge",
    "parse_filter",
    "route_changed",
    "TodoListPresenter",
    "TodoListView",
    "submit_new_title",
    "submit_edit",
]
