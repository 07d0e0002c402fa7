"""Query module - paging, sorting, filtering and search requests."""

from sysview.query.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    FilterSpec,
    Page,
    PageState,
    QueryRequest,
    SortSpec,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "FilterSpec",
    "Page",
    "PageState",
    "QueryRequest",
    "SortSpec",
]
