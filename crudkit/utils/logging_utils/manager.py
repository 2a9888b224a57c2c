from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, current_app

from crudkit.config import get_bool_env, get_int_env

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_RECORD_FIELDS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

_DEFAULT_BASE_DIR = "/tmp/crudkit_logs"

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def _resolve_app() -> Optional[Flask]:
    try:
        return current_app._get_current_object()  # type: ignore[attr-defined]
    except RuntimeError:
        return None


def get_log_context() -> Dict[str, Any]:
    """Return a shallow copy of the active contextual logging fields."""

    return dict(_log_context.get())


@contextmanager
def log_context(**fields: Any):
    """Add ``fields`` to every log line emitted inside the block; ``None`` values are dropped."""

    updated = dict(_log_context.get())
    updated.update({k: v for k, v in fields.items() if v is not None})
    token = _log_context.set(updated)
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextAwareFormatter(logging.Formatter):
    """Text or JSON formatter that appends the active ``log_context`` fields."""

    TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"

    def __init__(self, *, json_format: bool = False, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=self.TEXT_FORMAT, datefmt=datefmt)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        if self.json_format:
            return self._format_json(record)

        line = super().format(record)
        context = _log_context.get()
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return line

    def _format_json(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_") and key not in payload
        )

        context = _log_context.get()
        if context:
            payload["context"] = dict(context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


@dataclass(frozen=True)
class LogCategory:
    name: str
    filename: str


DEFAULT_CATEGORIES: Dict[str, LogCategory] = {
    "app": LogCategory("app", "application.log"),
    "crud": LogCategory("crud", "crud.log"),
    "transaction": LogCategory("transaction", "transaction.log"),
    "search": LogCategory("search", "search.log"),
    "filter": LogCategory("filter", "filter.log"),
    "error": LogCategory("error", "errors.log"),
}


class LoggerManager:
    """
    Hands out one logger per category.  Each category writes to its own
    rotating file under ``base_dir`` and optionally to a shared console handler.
    With category files disabled every category resolves to the Flask app logger.
    """

    def __init__(
        self,
        *,
        base_dir: Optional[str] = None,
        rotation_when: str = "midnight",
        backup_count: int = 7,
        enable_category_files: bool = True,
        default_level: int = logging.INFO,
        enable_console: bool = True,
        console_level: Optional[int] = None,
        json_format: bool = False,
    ) -> None:
        self._base_dir = base_dir
        self._rotation_when = rotation_when
        self._backup_count = backup_count
        self._enable_category_files = enable_category_files
        self._level = default_level
        self._enable_console = enable_console
        self._console_level = default_level if console_level is None else console_level
        self._json_format = json_format
        self._loggers: Dict[str, logging.Logger] = {}
        self._console_handler: Optional[logging.Handler] = None

    @property
    def base_dir(self) -> Path:
        if self._base_dir:
            return Path(self._base_dir)
        app = _resolve_app()
        if app and app.config.get("LOGGING_BASE_DIR"):
            return Path(app.config["LOGGING_BASE_DIR"])
        return Path(_DEFAULT_BASE_DIR)

    def get_logger(self, category: str) -> logging.Logger:
        if not self._enable_category_files:
            app = _resolve_app()
            return app.logger if app else logging.getLogger("crudkit")

        key = category.strip().lower()
        if key in self._loggers:
            return self._loggers[key]

        entry = DEFAULT_CATEGORIES.get(key) or LogCategory(key, f"{key}.log")
        logger = logging.getLogger(f"crudkit.{entry.name}")
        logger.propagate = False
        logger.setLevel(self._level)

        log_dir = self.base_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_dir / entry.filename,
            when=self._rotation_when,
            backupCount=self._backup_count,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setLevel(self._level)
        file_handler.setFormatter(ContextAwareFormatter(json_format=self._json_format))
        logger.addHandler(file_handler)

        if self._enable_console:
            logger.addHandler(self._shared_console_handler())

        self._loggers[key] = logger
        return logger

    def shutdown(self) -> None:
        for logger in self._loggers.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                if handler is not self._console_handler:
                    handler.close()
        self._loggers.clear()
        if self._console_handler:
            self._console_handler.close()
            self._console_handler = None

    def _shared_console_handler(self) -> logging.Handler:
        if self._console_handler is None:
            handler = logging.StreamHandler()
            handler.setLevel(self._console_level)
            handler.setFormatter(ContextAwareFormatter(json_format=self._json_format))
            self._console_handler = handler
        return self._console_handler


def _to_level(value: Any, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        numeric = getattr(logging, value.strip().upper(), None)
        if isinstance(numeric, int):
            return numeric
    return default


_manager: Optional[LoggerManager] = None


def init_logger(app: Flask) -> LoggerManager:
    """Replace the shared logger manager with one built from ``app.config``."""

    global _manager

    cfg = app.config
    manager = LoggerManager(
        base_dir=cfg.get("LOGGING_BASE_DIR"),
        rotation_when=cfg.get("LOGGING_ROTATION_WHEN", "midnight"),
        backup_count=cfg.get("LOGGING_ROTATION_BACKUP_COUNT", 7),
        enable_category_files=cfg.get("LOGGING_ENABLE_CATEGORY_FILES", True),
        default_level=_to_level(cfg.get("LOGGING_DEFAULT_LEVEL")),
        enable_console=cfg.get("LOGGING_CONSOLE_ENABLED", True),
        console_level=_to_level(cfg.get("LOGGING_CONSOLE_LEVEL")),
        json_format=cfg.get("LOGGING_JSON_FORMAT", False),
    )

    shutdown_logger()
    _manager = manager
    return _manager


def logger_manager() -> LoggerManager:
    """Shared manager; built from environment variables when no app has configured one."""

    global _manager
    if _manager is None:
        _manager = LoggerManager(
            enable_category_files=get_bool_env("LOGGING_ENABLE_CATEGORY_FILES", True),
            backup_count=get_int_env("LOGGING_ROTATION_BACKUP_COUNT", 7),
            enable_console=get_bool_env("LOGGING_CONSOLE_ENABLED", True),
            json_format=get_bool_env("LOGGING_JSON_FORMAT", False),
        )
    return _manager


def shutdown_logger() -> None:
    global _manager
    if _manager is None:
        return
    _manager.shutdown()
    _manager = None


def get_logger(category: str) -> logging.Logger:
    return logger_manager().get_logger(category)
