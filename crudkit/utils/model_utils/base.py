from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Type, TypeVar

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crudkit.errors import PersistenceError, RecordNotFoundError
from crudkit.extensions import db
from crudkit.utils.logging_utils import get_logger, log_context

from .query import primary_key_column
from .transaction import within_transaction

ModelType = TypeVar("ModelType", bound=db.Model)
T = TypeVar("T")

_SENSITIVE_TOKENS = ("password", "secret", "token", "otp", "key", "passcode", "credential")


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _sanitize_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        lower = key.lower()
        if any(token in lower for token in _SENSITIVE_TOKENS):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = _serialize_value(value)
    return sanitized


def _instance_identity(instance: Any) -> Optional[str]:
    state = sa_inspect(instance)
    if state.identity:
        return ":".join(str(_serialize_value(part)) for part in state.identity)
    value = getattr(instance, "id", None)
    return str(value) if value is not None else None


def _build_context(model_name: str, action: str, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    built = {"model": model_name, "action": action}
    if context:
        for key, value in context.items():
            built[f"ctx_{key}"] = value
    return built


def _run(model_name: str, operation: str, work: Callable[[Session], T]) -> T:
    try:
        return within_transaction(work)
    except SQLAlchemyError as exc:
        get_logger("error").exception("Failed to %s %s", operation, model_name)
        raise PersistenceError(model=model_name, operation=operation, detail=str(exc)) from exc


def is_new_record(record: Any) -> bool:
    """
    True when the persistence layer does not know ``record`` yet: it has no
    identity key and no primary key value assigned.
    """

    state = sa_inspect(record)
    if state.key is not None:
        return False
    return all(value is None for value in state.mapper.primary_key_from_instance(record))


def create_record(record: ModelType, *, context: Optional[Dict[str, Any]] = None) -> ModelType:
    """
    Insert ``record``.  A record that is already tracked is returned untouched
    so it is never inserted twice.
    """

    logger = get_logger("crud")
    model_name = record.__class__.__name__

    def _insert(session: Session) -> ModelType:
        if not is_new_record(record):
            logger.info("Create skipped for %s; already persisted target_id=%s", model_name, _instance_identity(record))
            return record
        session.add(record)
        session.flush()
        return record

    with log_context(**_build_context(model_name, "create", context)):
        logger.info("Creating %s", model_name)
        created = _run(model_name, "create", _insert)
        logger.info("Created %s target_id=%s", model_name, _instance_identity(created))
        return created


def save_record(record: ModelType, *, context: Optional[Dict[str, Any]] = None) -> ModelType:
    """
    Persist every current attribute of an existing record.

    Saving a record that was never created is a no-op: nothing is written and
    the record is returned as-is.
    """

    logger = get_logger("crud")
    model_name = record.__class__.__name__

    def _persist(session: Session) -> ModelType:
        if is_new_record(record):
            logger.info("Save skipped for %s; record has not been created", model_name)
            return record
        merged = session.merge(record)
        session.flush()
        return merged

    with log_context(**_build_context(model_name, "save", context)):
        logger.info("Saving %s target_id=%s", model_name, _instance_identity(record))
        saved = _run(model_name, "save", _persist)
        logger.info("Saved %s target_id=%s", model_name, _instance_identity(saved))
        return saved


def delete_record(record: ModelType, *, context: Optional[Dict[str, Any]] = None) -> None:
    """Delete the row matching ``record``; the transaction is rolled back on failure."""

    logger = get_logger("crud")
    model_name = record.__class__.__name__

    def _delete(session: Session) -> None:
        if is_new_record(record):
            raise PersistenceError(
                model=model_name,
                operation="delete",
                detail="record has no identity",
            )
        target = record if record in session else session.merge(record)
        session.delete(target)
        session.flush()

    with log_context(**_build_context(model_name, "delete", context)):
        identity = _instance_identity(record)
        logger.info("Deleting %s target_id=%s", model_name, identity)
        _run(model_name, "delete", _delete)
        logger.info("Deleted %s target_id=%s", model_name, identity)


def find_by_id(
    model_cls: Type[ModelType],
    record_id: Any,
    *,
    context: Optional[Dict[str, Any]] = None,
) -> ModelType:
    """
    Load the last row whose primary key equals ``record_id``.

    Raises :class:`RecordNotFoundError` when there is none.
    """

    logger = get_logger("crud")
    model_name = model_cls.__name__
    pk = primary_key_column(model_cls)

    def _load(session: Session) -> ModelType:
        stmt = select(model_cls).where(pk == record_id).order_by(pk.desc()).limit(1)
        instance = session.scalars(stmt).first()
        if instance is None:
            raise RecordNotFoundError(
                model=model_name,
                operation="find_by_id",
                detail=f"no row with id={_serialize_value(record_id)}",
            )
        return instance

    with log_context(**_build_context(model_name, "find_by_id", context)):
        logger.info("Fetching %s id=%s", model_name, _serialize_value(record_id))
        instance = _run(model_name, "find_by_id", _load)
        logger.info("Fetched %s id=%s", model_name, _serialize_value(record_id))
        return instance
