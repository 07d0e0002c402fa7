"""In-process backend adapter.

Wraps an ElementRepository behind the async ElementBackend contract, so a
store can run against the reference backend without a network hop. Each
call yields to the event loop once before touching the repository, which
keeps the suspension-point behaviour of a real backend.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from sysview.client.base import ElementBackend
from sysview.model.ElementRecord import ElementRecord
from sysview.query.pagination import Page, QueryRequest
from sysview.server.repository import ElementRepository


class InMemoryBackend(ElementBackend):
    """ElementBackend served from an in-process repository.

    Args:
        repository: Shared repository; a fresh one is created if omitted.
        latency: Seconds to sleep before each call.
    """

    def __init__(self, repository: ElementRepository | None = None, latency: float = 0.0) -> None:
        self.repository = repository if repository is not None else ElementRepository()
        self._latency = latency

    async def _pause(self) -> None:
        await asyncio.sleep(self._latency)

    async def create(self, type_tag: str, attributes: Mapping[str, Any]) -> ElementRecord:
        await self._pause()
        return self.repository.create(type_tag, attributes)

    async def list_elements(self, request: QueryRequest) -> Page:
        await self._pause()
        return self.repository.query(request)

    async def get(self, element_id: str) -> ElementRecord:
        await self._pause()
        return self.repository.get(element_id)

    async def update(self, element_id: str, changes: Mapping[str, Any]) -> ElementRecord:
        await self._pause()
        return self.repository.update(element_id, changes)

    async def delete(self, element_id: str) -> None:
        await self._pause()
        self.repository.delete(element_id)


__all__ = ["InMemoryBackend"]
