"""本地持久化 -- 以固定 key 读写序列化后的 todos

LocalStore 是字符串 key -> 字符串 value 的存储接口（类似浏览器 localStorage），
PersistenceBridge 负责 todos 的序列化与反序列化。
持久化为尽力而为：读取失败视为没有持久化数据，写入失败由 Store 记录日志，不回滚内存中的提交。
"""

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import TypeAdapter, ValidationError

from .models import Task, sort_todos

log = structlog.get_logger()

_todos_adapter = TypeAdapter(dict[str, Task])


class LocalStore(Protocol):
    """字符串 key-value 存储接口"""

    def get_item(self, key: str) -> str | None:
        """读取 key 对应的值，不存在时返回 None"""
        ...

    def set_item(self, key: str, value: str) -> None:
        """写入 key 对应的值"""
        ...


class MemoryLocalStore:
    """基于 dict 的内存实现（测试与一次性运行）"""

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileLocalStore:
    """每个 key 一个 JSON 文件的目录存储"""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def _path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._dir / f"{safe}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        # 先写临时文件再替换，避免半写入的文件
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)


class PersistenceBridge:
    """todos <-> LocalStore 的桥接"""

    def __init__(self, local_store: LocalStore, key: str) -> None:
        self._local_store = local_store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> dict[str, Task] | None:
        """读取持久化的 todos，按 id 排序

        从未写入、无法读取或无法解析时返回 None；已持久化的空映射原样返回。
        """
        try:
            raw = self._local_store.get_item(self._key)
        except (OSError, UnicodeDecodeError) as exc:
            log.warning(
                "persisted_todos_unreadable",
                key=self._key,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None
        if not raw:
            return None
        try:
            todos = _todos_adapter.validate_json(raw)
        except ValidationError as exc:
            log.warning(
                "persisted_todos_invalid",
                key=self._key,
                error_count=exc.error_count(),
            )
            return None

        mismatched = [key for key, task in todos.items() if task.id != key]
        if mismatched:
            log.warning("persisted_todos_invalid", key=self._key, mismatched_ids=mismatched)
            return None
        return sort_todos(todos)

    def save(self, todos: Mapping[str, Task]) -> None:
        """序列化 todos 并写入固定 key"""
        payload = _todos_adapter.dump_json(dict(todos)).decode("utf-8")
        self._local_store.set_item(self._key, payload)
        log.debug("todos_persisted", key=self._key, count=len(todos))
