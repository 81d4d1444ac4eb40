"""
Infrastructure package.

Logging configuration.
"""

from flashcrash.infra.logging_cfg import (
    AsyncQueueHandler,
    add_file_handler,
    JsonFormatter,
    ThrottledFilter,
    build_logger,
    log_event,
)

__all__ = [
    "AsyncQueueHandler",
    "add_file_handler",
    "JsonFormatter",
    "ThrottledFilter",
    "build_logger",
    "log_event",
]
