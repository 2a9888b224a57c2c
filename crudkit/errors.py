"""Exceptions raised by the data-access helpers.

Engine errors (``SQLAlchemyError``) never escape the helpers directly; they are
re-raised as :class:`PersistenceError` with the original exception chained as
``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class CrudKitError(Exception):
    """Base class for every error raised by crudkit."""


class PersistenceError(CrudKitError):
    """An insert, update, delete, find or count failed at the engine level."""

    def __init__(
        self,
        *,
        model: str,
        operation: str,
        detail: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.model = model
        self.operation = operation
        self.detail = detail
        super().__init__(f"[{model}] {operation} failed: {detail}")
        if cause is not None:
            self.__cause__ = cause


class RecordNotFoundError(PersistenceError):
    """No row matched an identifier or a single-row search."""


class FilterConfigurationError(CrudKitError, ValueError):
    """A filter or ordering declaration does not fit the target model."""
