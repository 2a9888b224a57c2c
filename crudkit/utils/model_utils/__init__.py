"""
Generic data-access helpers for SQLAlchemy models: a transaction wrapper,
single-record CRUD operations, a declarative filter clause builder and the
search / paged-search executors built on top of it.
"""

from .base import create_record, delete_record, find_by_id, is_new_record, save_record
from .filters import CompareFilter, Filter, FilterField, apply_filter, build_filter_clauses
from .query import QueryPlan, primary_key_column, resolve_column
from .search import (
    DEFAULT_ROWS_PER_PAGE,
    PagedSearchResult,
    filter_search,
    filter_search_single,
    paged_filter_search,
    parse_ordering,
)
from .transaction import within_transaction

__all__ = [
    "within_transaction",
    "is_new_record",
    "create_record",
    "save_record",
    "delete_record",
    "find_by_id",
    "CompareFilter",
    "Filter",
    "FilterField",
    "build_filter_clauses",
    "apply_filter",
    "QueryPlan",
    "primary_key_column",
    "resolve_column",
    "DEFAULT_ROWS_PER_PAGE",
    "PagedSearchResult",
    "parse_ordering",
    "filter_search_single",
    "filter_search",
    "paged_filter_search",
]
