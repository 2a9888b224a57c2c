"""
Convenience accessors for the structured logging facility.

Usage:
    from crudkit.utils.logging_utils import get_logger
    log = get_logger("crud")
    log.info("record created", extra={"record_id": record.id})
"""

from .manager import (
    ContextAwareFormatter,
    LogCategory,
    LoggerManager,
    get_log_context,
    get_logger,
    init_logger,
    log_context,
    logger_manager,
    shutdown_logger,
)

__all__ = [
    "ContextAwareFormatter",
    "LogCategory",
    "LoggerManager",
    "get_logger",
    "get_log_context",
    "log_context",
    "init_logger",
    "logger_manager",
    "shutdown_logger",
]
