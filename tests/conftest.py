"""Shared fixtures for sysview tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from sysview.client.base import ElementBackend
from sysview.client.memory import InMemoryBackend
from sysview.model import ElementRecord
from sysview.server.repository import ElementRepository
from sysview.store import ElementStore

# ─────────────────────────────────────────────────────────────────────────────
# Test backends
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class PendingCall:
    """A backend call parked until the test resolves it."""

    operation: str
    args: tuple[Any, ...]
    future: asyncio.Future = field(repr=False)

    def release(self, result: Any = None) -> None:
        self.future.set_result(result)

    def fail(self, error: BaseException) -> None:
        self.future.set_exception(error)


class GatedBackend(ElementBackend):
    """Backend whose every call blocks until the test releases it.

    Lets a test choose the order in which responses arrive.
    """

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []

    async def _park(self, operation: str, *args: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(PendingCall(operation, args, future))
        return await future

    async def create(self, type_tag, attributes):
        return await self._park("create", type_tag, dict(attributes))

    async def list_elements(self, request):
        return await self._park("list", request)

    async def get(self, element_id):
        return await self._park("get", element_id)

    async def update(self, element_id, changes):
        return await self._park("update", element_id, dict(changes))

    async def delete(self, element_id):
        return await self._park("delete", element_id)


class ScriptedBackend(InMemoryBackend):
    """In-memory backend that can be told to fail its next call."""

    def __init__(self, repository: ElementRepository | None = None) -> None:
        super().__init__(repository)
        self.fail_next: BaseException | None = None
        self.call_count = 0

    async def _pause(self) -> None:
        await super()._pause()
        self.call_count += 1
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error


async def settle(rounds: int = 5) -> None:
    """Give scheduled tasks a few loop turns to reach their next await."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record():
    """Factory for ElementRecords: ``make_record("U1", "PartUsage", definitionRef="D1")``."""

    def _make(element_id: str, type_tag: str, **attributes: Any) -> ElementRecord:
        return ElementRecord(id=element_id, type_tag=type_tag, attributes=attributes)

    return _make


@pytest.fixture
def elements(make_record):
    """Factory building an insertion-ordered ``id -> record`` map."""

    def _build(*records: ElementRecord) -> dict[str, ElementRecord]:
        return {r.id: r for r in records}

    return _build


@pytest.fixture
def repository():
    """Empty reference repository."""
    return ElementRepository()


@pytest.fixture
def backend(repository):
    """Scripted in-memory backend over ``repository``."""
    return ScriptedBackend(repository)


@pytest.fixture
def store(backend):
    """Empty store over the scripted backend."""
    return ElementStore(backend)


@pytest.fixture
def gated_backend():
    """Backend whose responses the test releases by hand."""
    return GatedBackend()


@pytest.fixture
def gated_store(gated_backend):
    """Empty store over the gated backend."""
    return ElementStore(gated_backend)


@pytest.fixture
def settle_loop():
    """The ``settle`` coroutine function, for tests driving concurrent tasks."""
    return settle


@pytest.fixture
def battery_repository(repository):
    """Repository holding one definition, two usages and a dangling usage.

    Returns:
        ``(repository, ids)`` where ``ids`` maps a short name to the
        server-assigned id.
    """
    pack = repository.create("PartDefinition", {"declaredName": "Battery Pack"})
    cell = repository.create(
        "PartUsage", {"declaredName": "Cell Module", "definitionRef": pack.id}
    )
    bms = repository.create("PartUsage", {"declaredName": "BMS Board", "definitionRef": pack.id})
    stray = repository.create(
        "PartUsage", {"declaredName": "Stray Usage", "definitionRef": "gone-123"}
    )
    ids = {"pack": pack.id, "cell": cell.id, "bms": bms.id, "stray": stray.id}
    return repository, ids
