"""标准 interceptor

- path: 把 handler 的工作状态收窄到状态树的某个子树，结束后拼回
- validate: after 阶段校验新状态，不通过则中止提交
- inject_coeffect: before 阶段注入外部只读输入
- record_effect: after 阶段把新状态的一部分登记为具名 effect（如持久化）
- debug: 记录事件处理前后的调试日志
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

import structlog
from pydantic import BaseModel

from .exceptions import SchemaValidationError
from .interceptor import (
    EVENT,
    STATE,
    Context,
    Interceptor,
    assoc_coeffect,
    assoc_effect,
)

log = structlog.get_logger()

# path 嵌套时保存原始状态的栈
_PATH_ORIGINALS = "path_originals"


def get_in(value: Any, keys: Sequence[Any]) -> Any:
    """按 keys 逐层读取：Mapping 按 key，pydantic 模型按属性"""
    for key in keys:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def assoc_in(value: Any, keys: Sequence[Any], new: Any) -> Any:
    """返回在 keys 处替换为 new 的新值，原值不变

    子树引用未变化时原样返回 value，保持引用相等以便订阅图跳过重算。
    """
    if not keys:
        return new
    key, rest = keys[0], keys[1:]
    current = get_in(value, (key,))
    replaced = assoc_in(current, rest, new)
    if replaced is current and value is not None:
        return value
    if isinstance(value, BaseModel):
        return value.model_copy(update={key: replaced})
    if value is None:
        return {key: replaced}
    return {**value, key: replaced}


def path(*keys: Any) -> Interceptor:
    """路径收窄 interceptor

    before: coeffects["state"] 收窄为 state[keys...]，原始状态入栈
    after: 原始状态出栈，把 effects["state"]（子状态）拼回原始状态的同一位置
    """
    if not keys:
        raise ValueError("path 至少需要一个 key")

    def before(ctx: Context) -> Context:
        original = ctx.coeffects.get(STATE)
        originals = [*ctx.coeffects.get(_PATH_ORIGINALS, []), original]
        ctx = assoc_coeffect(ctx, _PATH_ORIGINALS, originals)
        return assoc_coeffect(ctx, STATE, get_in(original, keys))

    def after(ctx: Context) -> Context:
        originals = ctx.coeffects[_PATH_ORIGINALS]
        original = originals[-1]
        ctx = assoc_coeffect(ctx, _PATH_ORIGINALS, originals[:-1])
        ctx = assoc_coeffect(ctx, STATE, original)
        if STATE not in ctx.effects:
            return ctx
        return assoc_effect(ctx, STATE, assoc_in(original, keys, ctx.effects[STATE]))

    return Interceptor(id=f"path:{'.'.join(str(k) for k in keys)}", before=before, after=after)


def validate(check: Callable[[Any], list[str]]) -> Interceptor:
    """校验 interceptor

    after 阶段对 effects["state"] 调用 check，返回非空违规列表时抛出
    SchemaValidationError，本次提交中止。
    """

    def after(ctx: Context) -> Context:
        if STATE not in ctx.effects:
            return ctx
        errors = check(ctx.effects[STATE])
        if errors:
            event = ctx.coeffects[EVENT]
            log.warning(
                "schema_validation_failed",
                event_name=event.name,
                error_count=len(errors),
                errors=errors,
            )
            raise SchemaValidationError(event.name, errors)
        return ctx

    return Interceptor(id="validate", after=after)


def inject_coeffect(key: str, provider: Callable[[], Any]) -> Interceptor:
    """before 阶段调用 provider()，结果写入 coeffects[key]"""

    def before(ctx: Context) -> Context:
        return assoc_coeffect(ctx, key, provider())

    return Interceptor(id=f"inject:{key}", before=before)


def record_effect(
    effect_key: str,
    extract: Callable[[Any], Any],
    only_changed: bool = True,
) -> Interceptor:
    """after 阶段登记具名 effect：effects[effect_key] = extract(新状态)

    effect 在状态提交之后才由 Store 执行，失败不会回滚提交。

    Args:
        effect_key: effect 名，需在 Store 中注册对应处理函数
        extract: 从完整新状态中提取 effect 参数
        only_changed: 新状态与旧状态为同一对象时不登记
    """

    def after(ctx: Context) -> Context:
        if STATE not in ctx.effects:
            return ctx
        new_state = ctx.effects[STATE]
        if only_changed and new_state is ctx.coeffects.get(STATE):
            return ctx
        return assoc_effect(ctx, effect_key, extract(new_state))

    return Interceptor(id=f"effect:{effect_key}", after=after)


def debug() -> Interceptor:
    """记录事件处理前后的调试日志"""

    def before(ctx: Context) -> Context:
        log.debug("event_handling", event_name=ctx.coeffects[EVENT].name)
        return ctx

    def after(ctx: Context) -> Context:
        changed = STATE in ctx.effects and ctx.effects[STATE] is not ctx.coeffects.get(STATE)
        log.debug(
            "event_handled",
            event_name=ctx.coeffects[EVENT].name,
            state_changed=changed,
            effects=sorted(ctx.effects),
        )
        return ctx

    return Interceptor(id="debug", before=before, after=after)
