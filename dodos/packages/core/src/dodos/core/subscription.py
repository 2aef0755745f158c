"""SubscriptionGraph -- 基于 StateContainer 的记忆化派生视图

节点按查询向量 (name, *args) 单例化，组成有向无环图：
- 根节点（未声明 inputs）直接读取容器中的状态
- 派生节点只读取其声明的输入节点，不直接访问状态

读取采用按需拉取：先刷新输入（祖先先于后代），
只有当某个输入与缓存的上次输入既不是同一对象也不相等时才重新计算，
因此一次状态提交中每个节点至多重算一次，且不会观察到半更新的祖先组合。
"""

import threading
from collections.abc import Callable, Sequence
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .container import StateContainer
from .exceptions import StoreError, UnknownSubscriptionError

log = structlog.get_logger()

Query = tuple[Any, ...]
QueryLike = str | Sequence[Any]


def as_query(query: QueryLike) -> Query:
    """把 "todos" 规范为 ("todos",)，列表或元组转为元组"""
    if isinstance(query, str):
        return (query,)
    query = tuple(query)
    if not query:
        raise ValueError("查询向量不能为空")
    return query


def _same(a: Any, b: Any) -> bool:
    return a is b or a == b


class SubscriptionDef(BaseModel):
    """订阅定义

    inputs 为 None 时是根节点：compute(state, query)；
    否则是派生节点：compute(输入值, query)，单个输入时直接传值，多个输入时传列表。
    """

    model_config = ConfigDict(frozen=True)

    name: str
    compute: Callable[..., Any]
    inputs: Callable[..., Any] | None = Field(default=None, description="query -> 输入查询")

    def input_queries(self, query: Query) -> tuple[list[Query], bool]:
        """解析 query 的输入查询，返回 (查询列表, 是否为单个输入)；根节点没有输入"""
        if self.inputs is None:
            return [], False
        declared = self.inputs(query)
        if isinstance(declared, (str, tuple)):
            return [as_query(declared)], True
        return [as_query(q) for q in declared], False


def _constant(value: Any) -> Callable[[Query], Any]:
    def inputs(_query: Query) -> Any:
        return value

    return inputs


class _Node:
    """图中的单例节点，持有缓存与对输入节点的引用"""

    def __init__(self, query: Query, definition: SubscriptionDef) -> None:
        self.query = query
        self.definition = definition
        self.refcount = 0
        self.input_signals: list[Signal] = []
        self.single_input = False
        self.has_value = False
        self.value: Any = None
        self.last_inputs: Any = None
        self.seen_version = -1

    @property
    def is_root(self) -> bool:
        return self.definition.inputs is None

    def current(self, version: int, state: Any) -> Any:
        """返回对应 (version, state) 快照的值，必要时重算"""
        if self.has_value and self.seen_version == version:
            return self.value

        if self.is_root:
            if self.has_value and state is self.last_inputs:
                self.seen_version = version
                return self.value
            inputs = state
            new_value = self.definition.compute(state, self.query)
        else:
            inputs = [s._node.current(version, state) for s in self.input_signals]
            if self.has_value and len(inputs) == len(self.last_inputs) and all(
                _same(a, b) for a, b in zip(inputs, self.last_inputs, strict=True)
            ):
                self.seen_version = version
                return self.value
            arg = inputs[0] if self.single_input else inputs
            new_value = self.definition.compute(arg, self.query)

        # 结果与上次相等时保留旧对象，下游据此跳过重算
        if not (self.has_value and _same(new_value, self.value)):
            self.value = new_value
        self.has_value = True
        self.last_inputs = inputs
        self.seen_version = version
        return self.value


class Signal:
    """订阅句柄：value() 读取当前值，dispose() 释放

    每个句柄计为节点的一个消费者，最后一个消费者释放后节点被逐出缓存。
    """

    def __init__(self, graph: "SubscriptionGraph", node: _Node) -> None:
        self._graph = graph
        self._node = node
        self._disposed = False

    @property
    def query(self) -> Query:
        return self._node.query

    @property
    def disposed(self) -> bool:
        return self._disposed

    def value(self) -> Any:
        """当前值（读取时按需刷新）"""
        if self._disposed:
            raise StoreError(f"订阅 {self.query!r} 已释放")
        return self._graph._read(self._node)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._graph._release(self._node)

    def __enter__(self) -> "Signal":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"Signal(query={self.query!r})"


class SubscriptionGraph:
    """订阅注册表 + 节点缓存"""

    def __init__(self, container: StateContainer) -> None:
        self._container = container
        self._defs: dict[str, SubscriptionDef] = {}
        self._nodes: dict[Query, _Node] = {}
        self._building: set[Query] = set()
        self._lock = threading.RLock()

    def register(
        self,
        name: str,
        compute: Callable[..., Any],
        inputs: QueryLike | Sequence[QueryLike] | Callable[[Query], Any] | None = None,
    ) -> None:
        """注册订阅

        Args:
            name: 查询名
            compute: 根节点 (state, query) -> 值；派生节点 (输入值, query) -> 值
            inputs: None 表示根节点；字符串或元组表示单个输入查询；
                列表表示多个输入查询；可调用对象则按 query 动态给出上述两种形式之一
        """
        if name in self._defs:
            log.warning("subscription_overwritten", subscription=name)

        input_fn: Callable[[Query], Any] | None
        if inputs is None:
            input_fn = None
        elif callable(inputs):
            input_fn = inputs
        elif isinstance(inputs, (str, tuple)):
            input_fn = _constant(inputs)
        else:
            input_fn = _constant([as_query(q) for q in inputs])

        with self._lock:
            self._defs[name] = SubscriptionDef(name=name, compute=compute, inputs=input_fn)

    def subscribe(self, query: QueryLike) -> Signal:
        """返回（必要时创建）query 对应的单例节点的句柄

        Raises:
            UnknownSubscriptionError: 查询名未注册
        """
        q = as_query(query)
        with self._lock:
            node = self._nodes.get(q)
            if node is None:
                node = self._create_node(q)
            node.refcount += 1
            return Signal(self, node)

    def read(self, query: QueryLike) -> Any:
        """一次性读取：subscribe + value + dispose"""
        with self.subscribe(query) as signal:
            return signal.value()

    def _create_node(self, q: Query) -> _Node:
        definition = self._defs.get(q[0])
        if definition is None:
            raise UnknownSubscriptionError(str(q[0]))
        if q in self._building:
            raise StoreError(f"订阅存在循环依赖: {q!r}")

        node = _Node(q, definition)
        if definition.inputs is not None:
            self._building.add(q)
            try:
                input_queries, node.single_input = definition.input_queries(q)
                for input_query in input_queries:
                    node.input_signals.append(self.subscribe(input_query))
            except BaseException:
                for signal in node.input_signals:
                    signal.dispose()
                raise
            finally:
                self._building.discard(q)
        self._nodes[q] = node
        log.debug("subscription_created", query=q)
        return node

    def _read(self, node: _Node) -> Any:
        version, state = self._container.snapshot()
        with self._lock:
            return node.current(version, state)

    def _release(self, node: _Node) -> None:
        with self._lock:
            node.refcount -= 1
            if node.refcount > 0:
                return
            if self._nodes.get(node.query) is node:
                del self._nodes[node.query]
            for signal in node.input_signals:
                signal.dispose()
            log.debug("subscription_evicted", query=node.query)

    def is_cached(self, query: QueryLike) -> bool:
        return as_query(query) in self._nodes

    def clear(self) -> None:
        """逐出所有缓存节点（热重载）；已持有的句柄仍可读取"""
        with self._lock:
            self._nodes.clear()
        log.debug("subscription_cache_cleared")
