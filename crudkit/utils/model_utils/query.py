from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, Type

from sqlalchemy import Select, func, inspect as sa_inspect, select
from sqlalchemy.sql.elements import ColumnElement

from crudkit.errors import FilterConfigurationError


def primary_key_column(model_cls: Type[Any]) -> ColumnElement:
    return sa_inspect(model_cls).primary_key[0]


def resolve_column(model_cls: Type[Any], name: str) -> ColumnElement:
    """
    Return the mapped column whose attribute key or table column name is
    ``name``, or fail with a clear message.
    """

    columns = sa_inspect(model_cls).columns
    if name:
        if name in columns:
            return columns[name]
        for column in columns:
            if column.name == name:
                return column
    raise FilterConfigurationError(
        f"{model_cls.__name__} has no column {name!r}; "
        f"known columns: {', '.join(sorted(columns.keys()))}"
    )


@dataclass(frozen=True)
class QueryPlan:
    """
    Immutable description of a select against one model.

    Every builder method returns a new plan; nothing touches the database
    until the plan is compiled with :meth:`to_select` or :meth:`to_count`
    and executed by the caller.
    """

    model: Type[Any]
    criteria: Tuple[ColumnElement, ...] = field(default_factory=tuple)
    ordering: Tuple[ColumnElement, ...] = field(default_factory=tuple)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None

    def where(self, *clauses: ColumnElement) -> "QueryPlan":
        return replace(self, criteria=self.criteria + tuple(clauses))

    def order_by(self, *clauses: ColumnElement) -> "QueryPlan":
        return replace(self, ordering=self.ordering + tuple(clauses))

    def limit(self, value: Optional[int]) -> "QueryPlan":
        return replace(self, limit_value=value)

    def offset(self, value: Optional[int]) -> "QueryPlan":
        return replace(self, offset_value=value)

    def to_select(self) -> Select:
        stmt = select(self.model)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        if self.ordering:
            stmt = stmt.order_by(*self.ordering)
        if self.offset_value is not None:
            stmt = stmt.offset(self.offset_value)
        if self.limit_value is not None:
            stmt = stmt.limit(self.limit_value)
        return stmt

    def to_count(self) -> Select:
        # ordering, limit and offset do not change how many rows match
        stmt = select(func.count()).select_from(self.model)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        return stmt
