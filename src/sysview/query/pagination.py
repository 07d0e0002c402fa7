"""Query/pagination adapter types.

Translates a view's sort/filter/search/page request into the backend's
query parameter shape, and describes the page that came back.

Public API
----------
- ``SortSpec`` / ``FilterSpec`` / ``QueryRequest`` - what a view asks for
- ``QueryRequest.to_params`` - backend query parameters
- ``Page`` - one decoded listing response
- ``PageState`` - pagination state kept beside the element map
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from sysview.errors import ValidationFailure
from sysview.model.ElementRecord import ElementRecord

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class SortSpec:
    """Sort on one attribute."""

    field: str
    direction: str = "asc"

    @classmethod
    def parse(cls, text: str) -> SortSpec:
        """Parse ``"field,direction"`` (direction optional)."""
        name, _, direction = text.partition(",")
        return cls(field=name.strip(), direction=(direction.strip() or "asc").lower())

    def to_param(self) -> str:
        return f"{self.field},{self.direction}"


@dataclass(frozen=True)
class FilterSpec:
    """Equality filter on one attribute."""

    field: str
    value: str

    @classmethod
    def parse(cls, text: str) -> FilterSpec:
        """Parse ``"field:value"``."""
        name, sep, value = text.partition(":")
        if not sep:
            raise ValidationFailure(
                "Invalid filter",
                field_errors={"filter": "Invalid filter format. Use: field:value"},
            )
        return cls(field=name.strip(), value=value.strip())

    def to_param(self) -> str:
        return f"{self.field}:{self.value}"


@dataclass(frozen=True)
class QueryRequest:
    """A page request issued by a view.

    Attributes:
        page: Zero-based page number.
        page_size: Elements per page (1..200).
        sort: Sort keys, most significant first.
        filters: Equality filters, all of which must match.
        search: Free-text search; blank means no search.
        type_tag: Restrict to one element type, or None for all.
    """

    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    sort: tuple[SortSpec, ...] = ()
    filters: tuple[FilterSpec, ...] = ()
    search: str = ""
    type_tag: str | None = None

    def validate(self) -> None:
        """Reject out-of-range paging and malformed sort keys.

        Raises:
            ValidationFailure: With one message per offending field.
        """
        errors: dict[str, str] = {}
        if self.page < 0:
            errors["page"] = "page must be >= 0"
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            errors["size"] = f"size must be between 1 and {MAX_PAGE_SIZE}"
        for spec in self.sort:
            if not spec.field:
                errors["sort"] = "Invalid sort format. Use: field,direction"
            elif spec.direction not in _DIRECTIONS:
                errors["sort"] = f"Invalid sort direction: {spec.direction}. Use: asc or desc"
        for spec in self.filters:
            if not spec.field:
                errors["filter"] = "Invalid filter format. Use: field:value"
        if errors:
            raise ValidationFailure("Invalid query", field_errors=errors)

    def with_type(self, type_tag: str | None) -> QueryRequest:
        return replace(self, type_tag=type_tag)

    def with_page(self, page: int) -> QueryRequest:
        return replace(self, page=page)

    def to_params(self) -> dict[str, Any]:
        """Translate to backend query parameters.

        List values are sent as repeated query parameters.
        """
        params: dict[str, Any] = {"page": self.page, "size": self.page_size}
        if self.type_tag:
            params["type"] = self.type_tag
        if self.sort:
            params["sort"] = [s.to_param() for s in self.sort]
        if self.filters:
            params["filter"] = [f.to_param() for f in self.filters]
        if self.search and self.search.strip():
            params["search"] = self.search.strip()
        return params

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> QueryRequest:
        """Inverse of ``to_params``; used by the reference backend.

        Raises:
            ValidationFailure: If page or size are not integers.
        """
        try:
            page = int(params.get("page", 0))
            size = int(params.get("size", DEFAULT_PAGE_SIZE))
        except (TypeError, ValueError):
            raise ValidationFailure(
                "Invalid query", field_errors={"page": "page and size must be integers"}
            ) from None
        return cls(
            page=page,
            page_size=size,
            sort=tuple(SortSpec.parse(s) for s in _as_list(params.get("sort"))),
            filters=tuple(FilterSpec.parse(f) for f in _as_list(params.get("filter"))),
            search=str(params.get("search") or ""),
            type_tag=params.get("type") or None,
        )


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


@dataclass
class Page:
    """One listing response from the backend."""

    content: list[ElementRecord] = field(default_factory=list)
    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_count: int = 0
    total_pages: int = 0
    is_first_page: bool = True
    is_last_page: bool = True

    @classmethod
    def build(cls, content: list[ElementRecord], total_count: int, request: QueryRequest) -> Page:
        """Build a page, deriving the page counters from ``total_count``."""
        total_pages = -(-total_count // request.page_size) if total_count else 0
        return cls(
            content=content,
            page=request.page,
            page_size=request.page_size,
            total_count=total_count,
            total_pages=total_pages,
            is_first_page=request.page == 0,
            is_last_page=request.page >= total_pages - 1,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the listing response shape."""
        return {
            "content": [r.to_dict() for r in self.content],
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "isFirstPage": self.is_first_page,
            "isLastPage": self.is_last_page,
        }


@dataclass(frozen=True)
class PageState:
    """Describes the last fetch; kept beside the element map, not in it."""

    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_count: int = 0
    total_pages: int = 0
    is_first_page: bool = True
    is_last_page: bool = True
    request: QueryRequest = field(default_factory=QueryRequest)

    @classmethod
    def from_page(cls, page: Page, request: QueryRequest) -> PageState:
        return cls(
            page=page.page,
            page_size=page.page_size,
            total_count=page.total_count,
            total_pages=page.total_pages,
            is_first_page=page.is_first_page,
            is_last_page=page.is_last_page,
            request=request,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "isFirstPage": self.is_first_page,
            "isLastPage": self.is_last_page,
            "request": self.request.to_params(),
        }


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "SortSpec",
    "FilterSpec",
    "QueryRequest",
    "Page",
    "PageState",
]
