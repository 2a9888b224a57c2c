from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from crudkit.errors import PersistenceError, RecordNotFoundError
from crudkit.extensions import db
from crudkit.models.enumerations import SortDirection
from crudkit.utils.logging_utils import get_logger, log_context

from .base import _sanitize_payload
from .filters import Filter, apply_filter
from .query import QueryPlan, primary_key_column, resolve_column

ModelType = TypeVar("ModelType", bound=db.Model)
T = TypeVar("T")

DEFAULT_ROWS_PER_PAGE = 25


@dataclass
class PagedSearchResult:
    """
    One page of search results plus the numbers needed to render a pager.

    ``from_index`` and ``to_index`` are 1-based and inclusive.  ``to_index``
    is ``from_index + rows - 1`` and can run past ``total_data`` on the last page.
    """

    total_data: int
    rows: int
    current_page: int
    last_page: int
    from_index: int
    to_index: int
    data: List[Any] = field(default_factory=list)


def _read(model_name: str, operation: str, work: Callable[[Session], T]) -> T:
    session = db.session
    try:
        return work(session)
    except SQLAlchemyError as exc:
        session.rollback()
        get_logger("error").exception("Failed to %s %s", operation, model_name)
        raise PersistenceError(model=model_name, operation=operation, detail=str(exc)) from exc


def _filter_summary(filter_value: Optional[Filter]) -> Dict[str, Any]:
    if filter_value is None:
        return {}
    return _sanitize_payload(filter_value.to_dict())


def parse_ordering(model_cls: Type[Any], order_by: Optional[str], sort: Optional[str]) -> List[ColumnElement]:
    """
    Pair the comma-separated ``order_by`` columns with the comma-separated
    ``sort`` directions by position.

    A direction other than ASC/DESC (case-insensitive), or a missing one,
    leaves the column without an explicit direction.
    """

    if not order_by:
        return []

    directions = sort.split(",") if sort else []
    clauses: List[ColumnElement] = []
    for index, raw_name in enumerate(order_by.split(",")):
        name = raw_name.strip()
        if not name:
            continue
        column = resolve_column(model_cls, name)
        direction = directions[index].strip().upper() if index < len(directions) else ""
        if direction == SortDirection.ASC.value:
            clauses.append(column.asc())
        elif direction == SortDirection.DESC.value:
            clauses.append(column.desc())
        else:
            clauses.append(column)
    return clauses


def filter_search_single(model_cls: Type[ModelType], filter_value: Optional[Filter]) -> ModelType:
    """Most recent (highest primary key) row matching ``filter_value``."""

    logger = get_logger("search")
    model_name = model_cls.__name__
    pk = primary_key_column(model_cls)
    plan = apply_filter(QueryPlan(model_cls), filter_value).order_by(pk.desc()).limit(1)

    def _load(session: Session) -> Optional[ModelType]:
        return session.scalars(plan.to_select()).first()

    with log_context(model=model_name, action="filter_search_single"):
        logger.info("Searching single %s filter=%s", model_name, _filter_summary(filter_value))
        instance = _read(model_name, "filter_search_single", _load)
        if instance is None:
            raise RecordNotFoundError(
                model=model_name,
                operation="filter_search_single",
                detail="no row matched the filter",
            )
        return instance


def filter_search(model_cls: Type[ModelType], filter_value: Optional[Filter]) -> List[ModelType]:
    """All rows matching ``filter_value`` in primary-key order."""

    logger = get_logger("search")
    model_name = model_cls.__name__
    plan = apply_filter(QueryPlan(model_cls), filter_value).order_by(primary_key_column(model_cls))

    def _load(session: Session) -> List[ModelType]:
        return list(session.scalars(plan.to_select()))

    with log_context(model=model_name, action="filter_search"):
        logger.info("Searching %s filter=%s", model_name, _filter_summary(filter_value))
        results = _read(model_name, "filter_search", _load)
        logger.info("Searched %s count=%s", model_name, len(results))
        return results


def paged_filter_search(
    model_cls: Type[ModelType],
    page: int,
    rows: int,
    order_by: Optional[str] = None,
    sort: Optional[str] = None,
    filter_value: Optional[Filter] = None,
) -> PagedSearchResult:
    """
    Count every row matching ``filter_value`` and return page ``page`` of
    ``rows`` rows, ordered by ``order_by`` / ``sort``.

    ``page <= 0`` means the first page and ``rows <= 0`` means 25 rows.
    Rows that tie on every requested column are ordered by primary key so
    consecutive pages never overlap.
    """

    logger = get_logger("search")
    model_name = model_cls.__name__

    if page <= 0:
        page = 1
    if rows <= 0:
        rows = DEFAULT_ROWS_PER_PAGE

    plan = apply_filter(QueryPlan(model_cls), filter_value)
    ordering = parse_ordering(model_cls, order_by, sort)
    pk = primary_key_column(model_cls)
    if not any(clause is pk or getattr(clause, "element", None) is pk for clause in ordering):
        ordering.append(pk)
    plan = plan.order_by(*ordering)

    offset = (page - 1) * rows

    def _load(session: Session) -> PagedSearchResult:
        total = session.scalar(plan.to_count()) or 0
        data = list(session.scalars(plan.offset(offset).limit(rows).to_select()))
        return PagedSearchResult(
            total_data=total,
            rows=rows,
            current_page=page,
            last_page=-(-total // rows),
            from_index=offset + 1,
            to_index=offset + rows,
            data=data,
        )

    with log_context(model=model_name, action="paged_filter_search"):
        logger.info(
            "Paged search %s page=%s rows=%s order_by=%s sort=%s filter=%s",
            model_name,
            page,
            rows,
            order_by,
            sort,
            _filter_summary(filter_value),
        )
        result = _read(model_name, "paged_filter_search", _load)
        logger.info(
            "Paged search %s total=%s last_page=%s returned=%s",
            model_name,
            result.total_data,
            result.last_page,
            len(result.data),
        )
        return result
