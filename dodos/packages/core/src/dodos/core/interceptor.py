"""Interceptor 链 -- 基于显式栈的两阶段执行

执行协议：
1. before 阶段：从 queue 头部依次取出 interceptor，压入 stack，
   若有 before hook 则 ctx = before(ctx)
2. after 阶段：从 stack 顶部依次弹出 interceptor，
   若有 after hook 则 ctx = after(ctx)

任一 hook 抛出异常时执行立即终止，异常原样上抛，Context 被丢弃。
before hook 可以清空 queue 以短路剩余的 before 阶段。
"""

from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .event import Event

# coeffect / effect 中约定的 key
STATE = "state"
EVENT = "event"


class Interceptor(BaseModel):
    """可组合的 before/after hook

    除闭包中的配置外无状态，hook 均为 Context -> Context 的纯函数。
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="标识，用于日志与调试")
    before: Callable[..., Any] | None = Field(default=None)
    after: Callable[..., Any] | None = Field(default=None)

    def __repr__(self) -> str:
        return f"Interceptor(id={self.id!r})"


class Context(BaseModel):
    """单次 dispatch 的临时上下文

    coeffects: handler 的只读输入（event、state 以及注入的外部输入）
    effects: handler 的输出（state 以及其他具名副作用）
    queue: 尚未执行 before 的 interceptor
    stack: 已执行 before、等待执行 after 的 interceptor
    """

    model_config = ConfigDict(frozen=True)

    coeffects: dict[str, Any] = Field(default_factory=dict)
    effects: dict[str, Any] = Field(default_factory=dict)
    queue: list[Interceptor] = Field(default_factory=list)
    stack: list[Interceptor] = Field(default_factory=list)


def get_coeffect(ctx: Context, key: str, default: Any = None) -> Any:
    return ctx.coeffects.get(key, default)


def assoc_coeffect(ctx: Context, key: str, value: Any) -> Context:
    return ctx.model_copy(update={"coeffects": {**ctx.coeffects, key: value}})


def get_effect(ctx: Context, key: str, default: Any = None) -> Any:
    return ctx.effects.get(key, default)


def assoc_effect(ctx: Context, key: str, value: Any) -> Context:
    return ctx.model_copy(update={"effects": {**ctx.effects, key: value}})


def halt(ctx: Context) -> Context:
    """清空 queue：剩余 interceptor 的 before 不再执行，已入栈的 after 照常执行"""
    return ctx.model_copy(update={"queue": []})


def _checked(interceptor: Interceptor, phase: str, result: Any) -> Context:
    if not isinstance(result, Context):
        raise TypeError(
            f"interceptor {interceptor.id!r} 的 {phase} hook 必须返回 Context，"
            f"实际返回 {type(result).__name__}"
        )
    return result


def _run_before(ctx: Context) -> Context:
    while ctx.queue:
        interceptor = ctx.queue[0]
        ctx = ctx.model_copy(
            update={"queue": ctx.queue[1:], "stack": [*ctx.stack, interceptor]}
        )
        if interceptor.before is not None:
            ctx = _checked(interceptor, "before", interceptor.before(ctx))
    return ctx


def _run_after(ctx: Context) -> Context:
    while ctx.stack:
        interceptor = ctx.stack[-1]
        ctx = ctx.model_copy(update={"stack": ctx.stack[:-1]})
        if interceptor.after is not None:
            ctx = _checked(interceptor, "after", interceptor.after(ctx))
    return ctx


def execute(
    event: Event,
    interceptors: Sequence[Interceptor],
    coeffects: Mapping[str, Any] | None = None,
) -> Context:
    """执行完整的 interceptor 链

    Args:
        event: 本次分发的事件，写入 coeffects["event"]
        interceptors: 有序 interceptor 列表，末尾通常是 handler interceptor
        coeffects: 初始 coeffects（通常包含 coeffects["state"]）

    Returns:
        执行完毕后的 Context，其 effects 交由 Store 提交
    """
    ctx = Context(
        coeffects={**(coeffects or {}), EVENT: event},
        queue=list(interceptors),
    )
    ctx = _run_before(ctx)
    return _run_after(ctx)


# ---- handler -> interceptor ----

StateHandler = Callable[..., Any]
EffectsHandler = Callable[..., Mapping[str, Any] | None]


def state_handler(handler: StateHandler, name: str | None = None) -> Interceptor:
    """把 (state, *args) -> new_state 形式的 handler 包装为末端 interceptor

    before hook 读取 coeffects["state"]（可能已被 path 收窄），
    把返回值写入 effects["state"]。
    """

    def before(ctx: Context) -> Context:
        event: Event = ctx.coeffects[EVENT]
        new_state = handler(ctx.coeffects.get(STATE), *event.args)
        return assoc_effect(ctx, STATE, new_state)

    return Interceptor(id=name or getattr(handler, "__name__", "state-handler"), before=before)


def effects_handler(handler: EffectsHandler, name: str | None = None) -> Interceptor:
    """把 (coeffects, *args) -> effects 形式的 handler 包装为末端 interceptor

    handler 拿到只读的 coeffects 视图，返回的具名 effects 合并进 ctx.effects。
    """

    def before(ctx: Context) -> Context:
        event: Event = ctx.coeffects[EVENT]
        effects = handler(MappingProxyType(ctx.coeffects), *event.args) or {}
        return ctx.model_copy(update={"effects": {**ctx.effects, **effects}})

    return Interceptor(id=name or getattr(handler, "__name__", "effects-handler"), before=before)
