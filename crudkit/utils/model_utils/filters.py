"""
Declarative filter shapes and the clause builder that turns them into
SQLAlchemy predicates.

A filter shape is a :class:`Filter` subclass whose class attributes are
:class:`FilterField` declarations::

    class PersonFilter(Filter):
        name = FilterField("name", ConditionKind.LIKE)
        status = FilterField("status", ConditionKind.OR)
        age = FilterField("age", ConditionKind.BETWEEN)
        city = FilterField("city")

    PersonFilter(name="smith", status=["A", "B"], age=CompareFilter(20, 30))

Fields left at ``None`` are unspecified and add no predicate.  The declared
fields are collected once, when the subclass is created.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from sqlalchemy import func, or_
from sqlalchemy.sql.elements import ColumnElement

from crudkit.errors import FilterConfigurationError
from crudkit.models.enumerations import ConditionKind
from crudkit.utils.logging_utils import get_logger

from .query import QueryPlan, resolve_column


@dataclass(frozen=True)
class CompareFilter:
    """Inclusive ``[value1, value2]`` range for ``BETWEEN`` fields."""

    value1: Any = None
    value2: Any = None


class FilterField:
    """One filterable field: the column it targets and how it is compared."""

    def __init__(self, column: str, condition: ConditionKind = ConditionKind.EQUALS) -> None:
        if not column:
            raise FilterConfigurationError("FilterField requires a column name")
        self.column = column
        self.condition = ConditionKind(condition)
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional["Filter"], owner: type) -> Any:
        if instance is None:
            return self
        return instance._values.get(self.name)

    def __set__(self, instance: "Filter", value: Any) -> None:
        instance._values[self.name] = value

    def __repr__(self) -> str:
        return f"FilterField(name={self.name!r}, column={self.column!r}, condition={self.condition.value})"


class Filter:
    """Base class for caller-defined filter shapes."""

    __filter_fields__: Tuple[FilterField, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared: Dict[str, FilterField] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, FilterField):
                    declared[name] = value
        cls.__filter_fields__ = tuple(declared.values())

    def __init__(self, **values: Any) -> None:
        self._values: Dict[str, Any] = {}
        known = {field.name for field in self.__filter_fields__}
        unknown = sorted(set(values) - known)
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected filter fields: {', '.join(unknown)}")
        for name, value in values.items():
            setattr(self, name, value)

    def specified(self) -> List[Tuple[FilterField, Any]]:
        """Declared fields holding a value, in declaration order."""

        return [
            (field, self._values[field.name])
            for field in self.__filter_fields__
            if self._values.get(field.name) is not None
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {field.name: value for field, value in self.specified()}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        values = ", ".join(f"{key}={value!r}" for key, value in self.to_dict().items())
        return f"{type(self).__name__}({values})"


def _equals_clause(field: FilterField, column: ColumnElement, value: Any) -> Optional[ColumnElement]:
    return column == value


def _like_clause(field: FilterField, column: ColumnElement, value: Any) -> Optional[ColumnElement]:
    if not isinstance(value, str):
        raise FilterConfigurationError(
            f"LIKE field {field.name!r} needs a str value, got {type(value).__name__}"
        )
    if value == "":
        return None
    return func.lower(column).contains(value.lower(), autoescape=True)


def _or_clause(field: FilterField, column: ColumnElement, value: Any) -> Optional[ColumnElement]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise FilterConfigurationError(
            f"OR field {field.name!r} needs a sequence of str, got {type(value).__name__}"
        )
    if any(not isinstance(item, str) for item in value):
        raise FilterConfigurationError(f"OR field {field.name!r} accepts str entries only")
    if not value:
        return None
    return or_(*(column == item for item in value))


def _between_clause(field: FilterField, column: ColumnElement, value: Any) -> Optional[ColumnElement]:
    if not isinstance(value, CompareFilter):
        raise FilterConfigurationError(
            f"BETWEEN field {field.name!r} needs a CompareFilter, got {type(value).__name__}"
        )
    if value.value1 is None or value.value1 == "":
        return None
    return column.between(value.value1, value.value2)


_CLAUSE_BUILDERS: Dict[ConditionKind, Callable[[FilterField, ColumnElement, Any], Optional[ColumnElement]]] = {
    ConditionKind.EQUALS: _equals_clause,
    ConditionKind.LIKE: _like_clause,
    ConditionKind.OR: _or_clause,
    ConditionKind.BETWEEN: _between_clause,
}


def build_filter_clauses(model_cls: Type[Any], filter_value: Optional[Filter]) -> List[ColumnElement]:
    """
    Translate ``filter_value`` into one predicate per specified field.

    Every declared field is checked against ``model_cls`` even when it holds
    no value, so a wrong column name fails on the first search rather than on
    the first search that happens to set it.
    """

    if filter_value is None:
        return []
    if not isinstance(filter_value, Filter):
        raise FilterConfigurationError(
            f"expected a Filter instance, got {type(filter_value).__name__}"
        )

    columns = {
        field.name: resolve_column(model_cls, field.column)
        for field in filter_value.__filter_fields__
    }

    clauses: List[ColumnElement] = []
    for field, value in filter_value.specified():
        clause = _CLAUSE_BUILDERS[field.condition](field, columns[field.name], value)
        if clause is not None:
            clauses.append(clause)

    get_logger("filter").debug(
        "Built %d clause(s) for %s from %s",
        len(clauses),
        model_cls.__name__,
        type(filter_value).__name__,
    )
    return clauses


def apply_filter(plan: QueryPlan, filter_value: Optional[Filter]) -> QueryPlan:
    """Return a new plan with the filter's predicates ANDed onto ``plan``."""

    return plan.where(*build_filter_clauses(plan.model, filter_value))
