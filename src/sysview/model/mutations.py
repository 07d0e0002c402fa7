"""Change tracking types for the element store.

This module provides dataclasses for recording applied store changes
and the references that projections could not resolve.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

# Entries kept before the oldest are discarded.
DEFAULT_MAX_ENTRIES = 1000


@dataclass(frozen=True)
class BrokenReference:
    """A reference to an element that is not resident in the store.

    Captured by the projections when a link cannot be resolved.

    Attributes:
        source_id: ID of the element holding the reference.
        target_id: The referenced ID that is not resident.
        edge_kind: Type of relationship ("usage_of", "satisfies", ...).
    """

    source_id: str
    target_id: str
    edge_kind: str

    def __str__(self) -> str:
        """Arrow form used in logs and text renderers."""
        return f"{self.source_id} --[{self.edge_kind}]--> {self.target_id} (missing)"


@dataclass
class ChangeEntry:
    """Single applied change.

    Entries are written only after the backend confirmed the operation,
    so the log never contains a change the store did not apply.

    Attributes:
        operation: "create", "update", "delete" or "load".
        element_id: The element that changed.
        before: Serialized record before the change (None on insert).
        after: Serialized record after the change (None on removal).
        id: Unique change ID (UUID4 hex).
        timestamp: When the change was applied.
    """

    operation: str
    element_id: str
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Short form: change id prefix, operation and element."""
        return f"[{self.id[:8]}] {self.operation}({self.element_id})"


class ChangeLog:
    """Bounded, append-only history of applied store changes.

    Once ``max_entries`` is reached, each append drops the oldest entry.
    Pass None for an unbounded log.

    Example:
        >>> log = ChangeLog()
        >>> log.append(ChangeEntry("create", "req-1", None, {"id": "req-1"}))
        >>> len(log)
        1
    """

    def __init__(self, max_entries: int | None = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._entries: deque[ChangeEntry] = deque(maxlen=max_entries)

    @property
    def max_entries(self) -> int | None:
        return self._entries.maxlen

    def append(self, entry: ChangeEntry) -> None:
        """Append a change entry to the log."""
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[ChangeEntry]:
        """Yield entries oldest first."""
        yield from self._entries

    def __len__(self) -> int:
        """Number of recorded changes."""
        return len(self._entries)

    def last(self) -> ChangeEntry | None:
        """Newest entry, or None before the first change."""
        return self._entries[-1] if self._entries else None

    def for_element(self, element_id: str) -> list[ChangeEntry]:
        """Get every entry touching one element, oldest first.

        Args:
            element_id: The element to filter by.

        Returns:
            List of matching entries.
        """
        return [e for e in self._entries if e.element_id == element_id]

    def clear(self) -> None:
        """Forget every recorded change."""
        self._entries.clear()


__all__ = ["DEFAULT_MAX_ENTRIES", "BrokenReference", "ChangeEntry", "ChangeLog"]
