"""EventRegistry -- 事件名 -> (interceptor 列表, handler) 注册表

dispatch 时按名称查表解析，不依赖动态方法解析。
"""

from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import UnknownEventError
from .interceptor import Interceptor

log = structlog.get_logger()


class EventRegistration(BaseModel):
    """单个事件的注册信息"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="事件名")
    interceptors: tuple[Interceptor, ...] = Field(default=(), description="有序 interceptor")
    handler: Interceptor = Field(description="末端 handler interceptor")

    @property
    def chain(self) -> list[Interceptor]:
        """完整执行链：interceptors + handler"""
        return [*self.interceptors, self.handler]


class EventRegistry:
    """事件注册表

    global_interceptors 会被放在每个事件自身 interceptor 之前（最外层）。
    """

    def __init__(self, global_interceptors: Sequence[Interceptor] = ()) -> None:
        self._global = tuple(global_interceptors)
        self._events: dict[str, EventRegistration] = {}

    def register(
        self,
        name: str,
        handler: Interceptor,
        interceptors: Sequence[Interceptor] = (),
    ) -> EventRegistration:
        """注册事件；同名重复注册时覆盖并记录 warning（热重载场景）"""
        if name in self._events:
            log.warning("event_handler_overwritten", event_name=name)
        registration = EventRegistration(
            name=name,
            interceptors=(*self._global, *interceptors),
            handler=handler,
        )
        self._events[name] = registration
        return registration

    def unregister(self, name: str) -> None:
        self._events.pop(name, None)

    def lookup(self, name: str) -> EventRegistration:
        """按名称查询注册信息

        Raises:
            UnknownEventError: 事件名未注册
        """
        try:
            return self._events[name]
        except KeyError:
            raise UnknownEventError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._events

    def names(self) -> list[str]:
        """已注册的事件名（按名称排序）"""
        return sorted(self._events)
