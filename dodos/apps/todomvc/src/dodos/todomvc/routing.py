"""路由协作方 -- URL 片段中的筛选条件 -> set-showing 事件

只识别 all / active / done，无法解析或缺失时回退到 all。
"""

import structlog
from dodos.core import Store

from .events import EventName
from .models import Showing

log = structlog.get_logger()


def parse_filter(fragment: str | None) -> Showing:
    """#/active、/active、active 均解析为 Showing.ACTIVE；其他回退为 Showing.ALL"""
    if not fragment:
        return Showing.ALL
    segment = fragment.strip().lstrip("#").strip("/").lower()
    try:
        return Showing(segment)
    except ValueError:
        log.debug("unknown_filter_route", fragment=fragment)
        return Showing.ALL


def route_changed(store: Store, fragment: str | None) -> Showing:
    """URL 变化时同步分发 set-showing，返回生效的筛选条件"""
    showing = parse_filter(fragment)
    store.dispatch_sync(EventName.SET_SHOWING, showing)
    return showing
