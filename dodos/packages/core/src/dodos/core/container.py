"""StateContainer -- 唯一的应用状态持有者

状态值本身不可变，每次状态流转都整体替换（set），不做局部修改。
version 在每次 set 后递增，订阅图据此判断是否需要重新校验缓存。
"""

import threading
from typing import Any


class StateContainer:
    """持有单个不可变状态值"""

    def __init__(self, initial: Any) -> None:
        self._value = initial
        self._version = 0
        self._lock = threading.Lock()

    def get(self) -> Any:
        """返回当前快照"""
        return self._value

    def set(self, value: Any) -> None:
        """原子替换整个状态值"""
        with self._lock:
            self._value = value
            self._version += 1

    @property
    def version(self) -> int:
        """已提交的次数"""
        return self._version

    def snapshot(self) -> tuple[int, Any]:
        """同时读取 (version, value)，保证两者对应同一次提交"""
        with self._lock:
            return self._version, self._value
