"""dodos core -- 单向数据流状态引擎

packages/core 的公开接口导出：
状态容器、interceptor 链、事件分发器、订阅图与结构校验。
"""

# 配置
from .config import StoreConfig, load_store_config

# 核心组件
from .container import StateContainer
from .event import Event

# 异常
from .exceptions import (
    ReentrantDispatchError,
    SchemaValidationError,
    StoreError,
    UnknownEventError,
    UnknownSubscriptionError,
)
from .interceptor import (
    EVENT,
    STATE,
    Context,
    Interceptor,
    assoc_coeffect,
    assoc_effect,
    effects_handler,
    execute,
    get_coeffect,
    get_effect,
    halt,
    state_handler,
)
from .interceptors import debug, inject_coeffect, path, record_effect, validate
from .registry import EventRegistration, EventRegistry
from .store import DISPATCH, Store
from .subscription import Signal, SubscriptionGraph
from .validation import model_violations, schema_check

__all__ = [
    "StoreConfig",
    "load_store_config",
    "StateContainer",
    "Event",
    "Context",
    "Interceptor",
    "STATE",
    "EVENT",
    "DISPATCH",
    "execute",
    "get_coeffect",
    "assoc_coeffect",
    "get_effect",
    "assoc_effect",
    "halt",
    "state_handler",
    "effects_handler",
    "path",
    "validate",
    "inject_coeffect",
    "record_effect",
    "debug",
    "EventRegistry",
    "EventRegistration",
    "Store",
    "SubscriptionGraph",
    "Signal",
    "model_violations",
    "schema_check",
    "StoreError",
    "UnknownEventError",
    "UnknownSubscriptionError",
    "ReentrantDispatchError",
    "SchemaValidationError",
]
