"""应用装配 -- 创建 Store、注册事件与订阅、同步初始化

启动顺序：
1. 以 default_state() 创建 Store
2. 注册持久化 effect、事件、订阅
3. 同步 dispatch initialize（读取持久化的 todos 作为 coeffect）
"""

import structlog
from dodos.core import Store, StoreConfig, load_store_config

from .events import EventName, register_events
from .models import AppState, default_state
from .persistence import FileLocalStore, LocalStore, PersistenceBridge
from .subs import register_subscriptions

log = structlog.get_logger()


class TodoApp:
    """已装配好的应用实例"""

    def __init__(self, store: Store, bridge: PersistenceBridge) -> None:
        self.store = store
        self.bridge = bridge

    @property
    def state(self) -> AppState:
        return self.store.state

    def reload(self) -> None:
        """热重载：清空订阅缓存，下次读取时重建"""
        self.store.subscriptions.clear()
        log.info("subscription_cache_reloaded")


def create_app(
    local_store: LocalStore | None = None,
    config: StoreConfig | None = None,
    initialize: bool = True,
) -> TodoApp:
    """创建应用实例

    Args:
        local_store: 持久化存储，None 时使用 config.data_dir 下的 FileLocalStore
        config: Store 配置，None 时从环境变量加载
        initialize: 是否立即同步 dispatch initialize

    Returns:
        TodoApp 实例
    """
    config = config or load_store_config()
    if local_store is None:
        local_store = FileLocalStore(config.data_dir)
    bridge = PersistenceBridge(local_store, config.storage_key)

    store = Store(default_state(), config=config)
    register_events(store, bridge)
    register_subscriptions(store)

    if initialize:
        store.dispatch_sync(EventName.INITIALIZE)
    return TodoApp(store, bridge)
