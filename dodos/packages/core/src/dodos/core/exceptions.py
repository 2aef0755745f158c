"""Store 异常体系

所有核心层异常均在 dispatch 调用栈内同步抛出，
抛出时本次 dispatch 中止，StateContainer 保持原值。
"""


class StoreError(Exception):
    """dodos.core 基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复（核心层错误均视为编程错误，默认不可恢复）
        """
        super().__init__(message)
        self.recoverable = recoverable


class UnknownEventError(StoreError):
    """dispatch 的事件名未注册"""

    def __init__(self, name: str) -> None:
        super().__init__(f"未注册的事件: {name!r}")
        self.name = name


class UnknownSubscriptionError(StoreError):
    """subscribe 的查询名未注册"""

    def __init__(self, name: str) -> None:
        super().__init__(f"未注册的订阅: {name!r}")
        self.name = name


class ReentrantDispatchError(StoreError):
    """在事件处理过程中再次调用 dispatch_sync

    同一时刻只允许一个 dispatch 运行；handler 内需要触发后续事件时，
    应返回 dispatch effect 或使用异步 dispatch。
    """

    def __init__(self, name: str, running: str) -> None:
        super().__init__(
            f"事件 {running!r} 处理中不允许同步 dispatch {name!r}",
        )
        self.name = name
        self.running = running


class SchemaValidationError(StoreError):
    """handler 产出的新状态不满足结构约束

    errors 列出所有违规字段（不只第一个），提交被中止。
    """

    def __init__(self, event: str, errors: list[str]) -> None:
        """
        Args:
            event: 触发校验失败的事件名
            errors: 人类可读的违规描述列表，形如 "todos.<id>.done: ..."
        """
        lines = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"事件 {event!r} 产出的状态未通过校验:\n{lines}")
        self.event = event
        self.errors = errors
