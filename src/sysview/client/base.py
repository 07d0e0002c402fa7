"""Element backend collaborator contract.

The store talks to its backend only through this interface. The contract
is generic across every type tag: there is no per-type code path.

Failures are raised as taxonomy exceptions from ``sysview.errors``,
never returned as values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from sysview.model.ElementRecord import ElementRecord
from sysview.query.pagination import Page, QueryRequest


class ElementBackend(ABC):
    """Abstract remote CRUD service for typed elements."""

    @abstractmethod
    async def create(self, type_tag: str, attributes: Mapping[str, Any]) -> ElementRecord:
        """Persist a new element; the returned record carries the server-assigned id."""

    @abstractmethod
    async def list_elements(self, request: QueryRequest) -> Page:
        """Fetch one page, optionally restricted to ``request.type_tag``."""

    @abstractmethod
    async def update(self, element_id: str, changes: Mapping[str, Any]) -> ElementRecord:
        """Apply a partial update; the returned record is the full element."""

    @abstractmethod
    async def delete(self, element_id: str) -> None:
        """Remove an element. Deleting an unknown id is not an error."""

    @abstractmethod
    async def get(self, element_id: str) -> ElementRecord:
        """Fetch a single element; unknown ids raise NotFoundFailure."""

    async def aclose(self) -> None:
        """Release transport resources."""


__all__ = ["ElementBackend"]
