"""Selection set shared by every presentation surface.

Membership is not checked against the store: an id may stay selected
after its element is gone. Projections only mark ids that are resident.
"""

from __future__ import annotations

from typing import Iterable, Iterator


class SelectionSet:
    """Set of currently selected element ids.

    Example:
        >>> sel = SelectionSet()
        >>> sel.select("A")
        >>> sel.select("B", exclusive=False)
        >>> sorted(sel.all())
        ['A', 'B']
        >>> sel.select("A", exclusive=False)
        >>> sorted(sel.all())
        ['B']
    """

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(ids)

    def select(self, element_id: str, exclusive: bool = True) -> None:
        """Select an id.

        Args:
            element_id: The id being clicked.
            exclusive: Replace the selection with ``{element_id}`` when True;
                toggle its membership when False (modifier-key click).
        """
        if exclusive:
            self._ids = {element_id}
        elif element_id in self._ids:
            self._ids.discard(element_id)
        else:
            self._ids.add(element_id)

    def discard(self, element_id: str) -> None:
        """Remove an id if present."""
        self._ids.discard(element_id)

    def clear(self) -> None:
        """Empty the selection."""
        self._ids.clear()

    def has(self, element_id: str) -> bool:
        """Check membership."""
        return element_id in self._ids

    def all(self) -> frozenset[str]:
        """Return a snapshot of the selected ids."""
        return frozenset(self._ids)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(frozenset(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"SelectionSet({sorted(self._ids)!r})"


__all__ = ["SelectionSet"]
