"""视图协作方 -- 从订阅生成渲染所需的快照

只消费四个订阅：visible-todos、all-complete、footer-counts、showing，
并提供输入框保存时的事件分发规则（去除首尾空白、空标题的处理）。
"""

from dodos.core import Signal, Store
from pydantic import BaseModel, Field

from .events import EventName
from .models import Showing, Task
from .subs import SubscriptionName


def items_left_label(count: int) -> str:
    """剩余数量文案：1 item left / 3 items left"""
    noun = "item" if count == 1 else "items"
    return f"{count} {noun} left"


class TodoListView(BaseModel):
    """一次渲染所需的全部数据"""

    visible_todos: list[Task] = Field(default_factory=list)
    all_complete: bool = Field(description="toggle-all 复选框是否勾选")
    active_count: int = Field(ge=0)
    completed_count: int = Field(ge=0)
    showing: Showing

    @property
    def items_left(self) -> str:
        return items_left_label(self.active_count)

    @property
    def show_main(self) -> bool:
        """存在任意待办时显示列表区域"""
        return self.active_count + self.completed_count > 0

    @property
    def show_clear_completed(self) -> bool:
        return self.completed_count > 0


class TodoListPresenter:
    """持有视图所需的订阅句柄，按需生成快照"""

    def __init__(self, store: Store) -> None:
        self._visible = store.subscribe(SubscriptionName.VISIBLE_TODOS)
        self._all_complete = store.subscribe(SubscriptionName.ALL_COMPLETE)
        self._footer = store.subscribe(SubscriptionName.FOOTER_COUNTS)
        self._showing = store.subscribe(SubscriptionName.SHOWING)

    @property
    def signals(self) -> list[Signal]:
        return [self._visible, self._all_complete, self._footer, self._showing]

    def snapshot(self) -> TodoListView:
        active, completed = self._footer.value()
        return TodoListView(
            visible_todos=self._visible.value(),
            all_complete=self._all_complete.value(),
            active_count=active,
            completed_count=completed,
            showing=self._showing.value(),
        )

    def close(self) -> None:
        for signal in self.signals:
            signal.dispose()

    def __enter__(self) -> "TodoListPresenter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def submit_new_title(store: Store, text: str) -> bool:
    """新建输入框保存：去除空白后为空则忽略，返回是否分发了事件"""
    title = text.strip()
    if not title:
        return False
    store.dispatch_sync(EventName.CREATE_TODO, title)
    return True


def submit_edit(store: Store, todo_id: str, text: str) -> EventName:
    """编辑输入框保存：标题为空时删除该待办，否则更新标题"""
    title = text.strip()
    if title:
        store.dispatch_sync(EventName.UPDATE_TODO, todo_id, title)
        return EventName.UPDATE_TODO
    store.dispatch_sync(EventName.DELETE_TODO, todo_id)
    return EventName.DELETE_TODO
