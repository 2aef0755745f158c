"""结构校验 -- 基于 pydantic 模型的状态校验与错误人性化

报告所有违规字段，而不只是第一个。
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

Check = Callable[[Any], list[str]]


def humanize_error(error: Mapping[str, Any]) -> str:
    """把 pydantic 错误转为 "a.b.c: message" 形式"""
    loc = ".".join(str(part) for part in error["loc"]) or "<root>"
    return f"{loc}: {error['msg']}"


def model_violations(model_cls: type[BaseModel], value: Any) -> list[str]:
    """按 model_cls 校验 value，返回全部违规描述；通过时返回空列表

    value 可以是 model_cls 实例（需配置 revalidate_instances="always"
    才会重新校验字段）或普通 dict。
    """
    try:
        model_cls.model_validate(value)
    except ValidationError as exc:
        return [humanize_error(e) for e in exc.errors()]
    return []


def schema_check(
    model_cls: type[BaseModel],
    extra_checks: Iterable[Check] = (),
) -> Check:
    """构造 validate interceptor 使用的 check 函数

    Args:
        model_cls: 描述状态结构的 pydantic 模型
        extra_checks: 额外的跨字段检查（如 key 与 id 一致），结果与字段错误合并

    Returns:
        value -> 违规描述列表
    """
    extras = list(extra_checks)

    def check(value: Any) -> list[str]:
        errors = model_violations(model_cls, value)
        for extra in extras:
            for error in extra(value):
                if error not in errors:
                    errors.append(error)
        return errors

    return check
