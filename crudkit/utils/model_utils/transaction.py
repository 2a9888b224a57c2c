from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from crudkit.extensions import db
from crudkit.models.enumerations import TransactionMode
from crudkit.utils.logging_utils import get_logger

T = TypeVar("T")

UnitOfWork = Callable[[Session], T]


def within_transaction(
    work: UnitOfWork[T],
    *,
    mode: TransactionMode = TransactionMode.COMMIT_ON_SUCCESS,
) -> T:
    """
    Run ``work`` against the active session and finish the transaction exactly once.

    With ``COMMIT_ON_SUCCESS`` the session is committed when ``work`` returns
    and rolled back when it raises.  ``ALWAYS_COMMIT`` commits in both cases,
    so a unit of work that must not leave partial changes behind has to call
    ``session.rollback()`` itself before raising.

    The transaction is the one ``db.session`` already has open: changes the
    caller left pending before the call are committed or rolled back together
    with those made by ``work``.

    An exception raised by ``work`` always reaches the caller unchanged, even
    when the commit that follows it in ``ALWAYS_COMMIT`` mode fails.  A failed
    commit after a successful ``work`` is rolled back and re-raised.
    """

    logger = get_logger("transaction")
    session = db.session
    mode = TransactionMode(mode)
    name = getattr(work, "__name__", repr(work))

    logger.debug("Transaction begin work=%s mode=%s", name, mode.value)
    try:
        result = work(session)
    except Exception:
        if mode is TransactionMode.ALWAYS_COMMIT:
            logger.warning("Unit of work %s failed; committing anyway (mode=%s)", name, mode.value)
            _commit_after_failure(session, logger, name)
        else:
            logger.info("Unit of work %s failed; rolling back", name)
            session.rollback()
        raise

    _commit(session, logger, name)
    logger.debug("Transaction committed work=%s", name)
    return result


def _commit(session: Session, logger, name: str) -> None:
    try:
        session.commit()
    except Exception:
        logger.exception("Commit failed for unit of work %s; rolling back", name)
        session.rollback()
        raise


def _commit_after_failure(session: Session, logger, name: str) -> None:
    # The unit of work's own exception is the one propagated; a commit
    # failure here is only logged.
    try:
        session.commit()
    except Exception:
        logger.exception("Commit after failed unit of work %s failed; rolling back", name)
        session.rollback()
