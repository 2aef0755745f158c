"""Store -- 事件分发器 + 状态提交

dispatch 流程：
1. 按事件名查询注册的 (interceptors, handler)
2. 以 coeffects["state"] = 当前状态 构建 Context，执行 interceptor 链
3. 链执行成功后把 effects["state"] 提交到 StateContainer
4. 释放分发锁后按提交顺序执行其余具名 effects（持久化、后续 dispatch 等），失败只记录日志

任一阶段抛出异常时本次 dispatch 中止，容器保持原值。
同一时刻只有一个 dispatch 在运行，包括异步队列的消费者。
"""

import asyncio
import concurrent.futures
import threading
from collections import deque
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import structlog

from .config import StoreConfig
from .container import StateContainer
from .event import Event
from .exceptions import ReentrantDispatchError, StoreError
from .interceptor import (
    STATE,
    EffectsHandler,
    Interceptor,
    StateHandler,
    effects_handler,
    execute,
    state_handler,
)
from .interceptors import debug
from .registry import EventRegistry
from .subscription import QueryLike, Signal, SubscriptionGraph

log = structlog.get_logger()

# 内置 effect：提交后续事件到异步队列
DISPATCH = "dispatch"

EffectHandler = Callable[[Any], None]


def as_event(value: Any) -> Event:
    """Event / "name" / ("name", *args) -> Event"""
    if isinstance(value, Event):
        return value
    if isinstance(value, str):
        return Event(name=value)
    if isinstance(value, (tuple, list)) and value and isinstance(value[0], str):
        return Event(name=value[0], args=tuple(value[1:]))
    raise TypeError(f"无法解析为事件: {value!r}")


class Store:
    """应用状态存储：持有容器、事件注册表、订阅图与异步事件队列"""

    def __init__(
        self,
        initial_state: Any,
        config: StoreConfig | None = None,
        global_interceptors: Sequence[Interceptor] = (),
    ) -> None:
        """
        Args:
            initial_state: 初始状态（不可变值）
            config: Store 配置，None 时使用默认值
            global_interceptors: 作用于每个事件的最外层 interceptor
        """
        self._config = config or StoreConfig()
        interceptors = list(global_interceptors)
        if self._config.debug_events:
            interceptors.insert(0, debug())

        self._container = StateContainer(initial_state)
        self._registry = EventRegistry(interceptors)
        self._subscriptions = SubscriptionGraph(self._container)
        self._effects: dict[str, EffectHandler] = {DISPATCH: self._dispatch_effect}

        self._dispatch_lock = threading.Lock()
        self._running: Event | None = None
        self._running_thread: int | None = None
        # 已提交、待执行的 effects，按提交顺序排列
        self._pending_effects: deque[tuple[Event, Mapping[str, Any]]] = deque()
        self._effects_lock = threading.RLock()

        # 队列本身不设上限，queue_maxsize 只约束外部提交，后续事件不受限
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._maxsize = self._config.queue_maxsize
        self._space_freed = asyncio.Event()
        # 等待空位的跨线程提交按到达顺序入队
        self._put_lock = asyncio.Lock()
        self._consumer: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    # ---- 只读访问 ----

    @property
    def state(self) -> Any:
        """当前状态快照"""
        return self._container.get()

    @property
    def container(self) -> StateContainer:
        return self._container

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    @property
    def subscriptions(self) -> SubscriptionGraph:
        return self._subscriptions

    # ---- 注册 ----

    def register_state_event(
        self,
        name: str,
        handler: StateHandler,
        interceptors: Sequence[Interceptor] = (),
    ) -> None:
        """注册 (state, *args) -> new_state 形式的事件"""
        self._registry.register(name, state_handler(handler, name), interceptors)

    def register_effects_event(
        self,
        name: str,
        handler: EffectsHandler,
        interceptors: Sequence[Interceptor] = (),
    ) -> None:
        """注册 (coeffects, *args) -> effects 形式的事件"""
        self._registry.register(name, effects_handler(handler, name), interceptors)

    def register_effect(self, key: str, handler: EffectHandler) -> None:
        """注册具名 effect 处理函数；state 由 Store 自身提交，不可覆盖"""
        if key == STATE:
            raise ValueError("state effect 由 Store 提交，不能注册处理函数")
        self._effects[key] = handler

    def register_subscription(
        self,
        name: str,
        compute: Callable[..., Any],
        inputs: Any = None,
    ) -> None:
        self._subscriptions.register(name, compute, inputs)

    # ---- 订阅 ----

    def subscribe(self, query: QueryLike) -> Signal:
        return self._subscriptions.subscribe(query)

    def read(self, query: QueryLike) -> Any:
        """一次性读取订阅值"""
        return self._subscriptions.read(query)

    # ---- 同步分发 ----

    def dispatch_sync(self, name: str, *args: Any) -> None:
        """同步分发：返回时整条链（含 effects）已执行完毕

        Raises:
            UnknownEventError: 事件名未注册
            SchemaValidationError: 新状态未通过校验
            ReentrantDispatchError: 在 handler 执行期间再次同步分发
        """
        self._handle(Event(name=name, args=args))

    def _handle(self, event: Event) -> None:
        if self._running_thread == threading.get_ident():
            running = self._running.name if self._running else ""
            raise ReentrantDispatchError(event.name, running)

        with self._dispatch_lock:
            self._running = event
            self._running_thread = threading.get_ident()
            try:
                registration = self._registry.lookup(event.name)
                ctx = execute(
                    event,
                    registration.chain,
                    {STATE: self._container.get()},
                )
                has_effects = self._commit(event, ctx.effects)
            finally:
                self._running = None
                self._running_thread = None
        if has_effects:
            self._run_pending_effects()

    def _commit(self, event: Event, effects: Mapping[str, Any]) -> bool:
        """提交新状态并登记其余 effects，返回是否有待执行的 effects"""
        if STATE in effects:
            new_state = effects[STATE]
            if new_state is not self._container.get():
                self._container.set(new_state)
                log.debug(
                    "state_committed",
                    event_name=event.name,
                    version=self._container.version,
                )
        if any(key != STATE for key in effects):
            self._pending_effects.append((event, effects))
            return True
        return False

    def _run_pending_effects(self) -> None:
        """在分发锁之外按提交顺序执行 effects；其他线程提交的也一并执行"""
        with self._effects_lock:
            while self._pending_effects:
                event, effects = self._pending_effects.popleft()
                self._apply_effects(event, effects)

    def _apply_effects(self, event: Event, effects: Mapping[str, Any]) -> None:
        for key, value in effects.items():
            if key == STATE:
                continue
            handler = self._effects.get(key)
            if handler is None:
                log.warning("unknown_effect_ignored", effect=key, event_name=event.name)
                continue
            try:
                handler(value)
            except Exception:
                # 提交已完成，effect 失败不回滚
                log.exception("effect_failed", effect=key, event_name=event.name)

    def _dispatch_effect(self, value: Any) -> None:
        # 后续事件不受 queue_maxsize 约束，保证整组入队
        events = value if isinstance(value, list) else [value]
        for item in events:
            self._queue.put_nowait(as_event(item))

    # ---- 异步分发 ----

    def dispatch(self, name: str, *args: Any) -> None:
        """异步分发：事件入队，由消费者按提交顺序逐个处理

        队列有上限且已满时抛出 asyncio.QueueFull，事件不会被静默丢弃。
        """
        if self._is_full():
            raise asyncio.QueueFull
        self._queue.put_nowait(Event(name=name, args=args))

    def dispatch_threadsafe(self, name: str, *args: Any) -> concurrent.futures.Future[None]:
        """从其他线程入队，需在 start() 之后调用

        队列已满时在事件循环中等待空位，不丢弃事件。返回的 Future 在事件入队后完成，
        调用方可在线程中 result() 等待（不要在事件循环线程中等待）。
        """
        if self._loop is None:
            raise StoreError("Store 尚未启动异步消费者，无法跨线程分发")
        event = Event(name=name, args=args)
        return asyncio.run_coroutine_threadsafe(self._put_when_free(event), self._loop)

    def _is_full(self) -> bool:
        return self._maxsize > 0 and self._queue.qsize() >= self._maxsize

    async def _put_when_free(self, event: Event) -> None:
        async with self._put_lock:
            while self._is_full():
                self._space_freed.clear()
                await self._space_freed.wait()
            self._queue.put_nowait(event)

    def _take(self, event: Event) -> None:
        try:
            self._handle_queued(event)
        finally:
            self._queue.task_done()
            self._space_freed.set()

    @property
    def pending(self) -> int:
        """队列中尚未处理的事件数"""
        return self._queue.qsize()

    def flush(self) -> None:
        """在当前调用栈内按顺序处理队列中所有事件（未启动消费者时使用）"""
        if self._consumer is not None:
            raise StoreError("异步消费者运行中，请使用 await drain()")
        while not self._queue.empty():
            self._take(self._queue.get_nowait())

    async def drain(self) -> None:
        """等待当前已提交的事件全部处理完毕"""
        if self._consumer is None:
            self.flush()
            return
        await self._queue.join()

    def _handle_queued(self, event: Event) -> None:
        try:
            self._handle(event)
        except Exception:
            log.exception("queued_event_failed", event_name=event.name)

    async def _consume(self) -> None:
        while True:
            self._take(await self._queue.get())

    def start(self) -> None:
        """在当前事件循环中启动唯一的队列消费者"""
        if self._consumer is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._consumer = asyncio.create_task(self._consume())
        log.debug("event_consumer_started")

    async def stop(self) -> None:
        """处理完已入队事件后停止消费者"""
        if self._consumer is None:
            return
        await self._queue.join()
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass
        self._consumer = None
        self._loop = None
        log.debug("event_consumer_stopped")

    async def __aenter__(self) -> "Store":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
