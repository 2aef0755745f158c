"""structlog 配置 -- CLI 启动时调用一次

DODOS_LOG_FORMAT: "dev"（默认，ConsoleRenderer）或 "json"
DODOS_LOG_LEVEL: 显式日志级别；未设置时开启 debug_events 用 DEBUG，否则 WARNING
日志写到 stderr，stdout 留给 CLI 输出。
"""

import logging
import os
import sys

import structlog
from dodos.core import StoreConfig

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def resolve_log_level(level_name: str | None, debug_events: bool = False) -> int:
    """日志级别名 -> logging 常量；未知名称回退到默认级别"""
    default = logging.DEBUG if debug_events else logging.WARNING
    if not level_name:
        return default
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else default


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """stdlib handler 使用的 formatter，structlog 与标准库日志走同一条处理链"""
    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def setup_logging(config: StoreConfig | None = None) -> None:
    """初始化 structlog，日志经标准库 logging 输出到 stderr"""
    debug_events = config.debug_events if config else False
    level = resolve_log_level(os.environ.get("DODOS_LOG_LEVEL"), debug_events)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(os.environ.get("DODOS_LOG_FORMAT", "dev")))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
