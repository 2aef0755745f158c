"""Task id 生成 -- 单调 ULID，以 UUID 字符串形式表示

同一进程内严格递增：同一毫秒内生成的 ULID 在上一个的基础上加一，
因此按 id 字典序排序即为创建顺序。
"""

import threading

from ulid import ULID


class MonotonicULID:
    """线程安全的单调 ULID 生成器"""

    def __init__(self) -> None:
        self._last: ULID | None = None
        self._lock = threading.Lock()

    def __call__(self) -> ULID:
        with self._lock:
            candidate = ULID()
            if self._last is not None and candidate <= self._last:
                candidate = ULID.from_int(int(self._last) + 1)
            self._last = candidate
            return candidate


_generate = MonotonicULID()


def new_todo_id() -> str:
    """生成新的 task id（小写规范 UUID 字符串）"""
    return str(_generate().to_uuid())
