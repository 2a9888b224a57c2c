# schemas/__init__.py

from .paged_result_schema import BaseModelSchema, PagedSearchResultSchema, paged_result_schema

__all__ = [
    'BaseModelSchema',
    'PagedSearchResultSchema',
    'paged_result_schema',
]
