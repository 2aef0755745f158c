"""CLI 入口模块 -- python -m dodos.todomvc <command>

支持的命令：
  list [all|active|done]   列出待办
  add <title>              新建待办
  toggle <id>              切换完成状态
  edit <id> <title>        修改标题（标题为空时删除）
  delete <id>              删除待办
  toggle-all               全部完成 / 全部取消完成
  clear-completed          清除已完成的待办

<id> 可以是完整 id 或唯一前缀。数据保存在 DODOS_DATA_DIR 目录下。
"""

import sys

from dodos.core import SchemaValidationError, load_store_config

from .app import TodoApp, create_app
from .events import EventName
from .logging_config import setup_logging
from .routing import route_changed
from .view import TodoListPresenter, submit_edit, submit_new_title

USAGE = """用法: python -m dodos.todomvc <command>
命令:
  list [all|active|done]   列出待办
  add <title>              新建待办
  toggle <id>              切换完成状态
  edit <id> <title>        修改标题（标题为空时删除）
  delete <id>              删除待办
  toggle-all               全部完成 / 全部取消完成
  clear-completed          清除已完成的待办"""


def _fail(message: str) -> None:
    print(message)
    sys.exit(1)


def _resolve_id(app: TodoApp, prefix: str) -> str:
    """完整 id 或唯一前缀 -> 完整 id"""
    todos = app.state.todos
    if prefix in todos:
        return prefix
    matches = [todo_id for todo_id in todos if todo_id.startswith(prefix)]
    if not matches:
        _fail(f"未找到待办: {prefix}")
    if len(matches) > 1:
        _fail(f"id 前缀不唯一: {prefix}（匹配 {len(matches)} 条）")
    return matches[0]


def _print_list(app: TodoApp, showing: str | None) -> None:
    route_changed(app.store, showing)
    with TodoListPresenter(app.store) as presenter:
        view = presenter.snapshot()
    for task in view.visible_todos:
        mark = "x" if task.done else " "
        print(f"[{mark}] {task.title}  ({task.id})")
    print(f"{view.items_left}  筛选: {view.showing}")


def main(argv: list[str] | None = None) -> None:
    """CLI 主入口"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        sys.exit(1)

    config = load_store_config()
    setup_logging(config)
    command, rest = args[0], args[1:]
    app = create_app(config=config)

    try:
        if command == "list":
            _print_list(app, rest[0] if rest else None)
        elif command == "add":
            if not submit_new_title(app.store, " ".join(rest)):
                _fail("标题不能为空")
        elif command == "toggle" and len(rest) == 1:
            app.store.dispatch_sync(EventName.TOGGLE_DONE, _resolve_id(app, rest[0]))
        elif command == "edit" and rest:
            submit_edit(app.store, _resolve_id(app, rest[0]), " ".join(rest[1:]))
        elif command == "delete" and len(rest) == 1:
            app.store.dispatch_sync(EventName.DELETE_TODO, _resolve_id(app, rest[0]))
        elif command == "toggle-all":
            app.store.dispatch_sync(EventName.COMPLETE_ALL_TOGGLE)
        elif command == "clear-completed":
            app.store.dispatch_sync(EventName.CLEAR_COMPLETED)
        else:
            print(f"未知命令或参数错误: {' '.join(args)}")
            print(USAGE)
            sys.exit(1)
    except SchemaValidationError as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
