"""Relations - Edge kinds and relationship type tags.

This module defines the typed links between elements:
- EdgeKind: Enum of link types drawn by the graph projection
- RELATIONSHIP_TYPE_TAGS: Type tags whose elements *are* links
"""

from __future__ import annotations

from enum import Enum


class EdgeKind(Enum):
    """Types of edges in the element graph.

    - USAGE_OF: Definition to one of its usages (derived from ``definitionRef``)
    - SATISFIES: Source satisfies target
    - DERIVES: Target is derived from source
    - REFINES: Source adds detail to target
    - TRACE: Untyped trace link
    """

    USAGE_OF = "usage_of"
    SATISFIES = "satisfies"
    DERIVES = "derives"
    REFINES = "refines"
    TRACE = "trace"

    def is_relationship(self) -> bool:
        """True for kinds backed by a relationship element of their own."""
        return self is not EdgeKind.USAGE_OF


# Several spellings reach us from the backend; all fold into one kind.
RELATIONSHIP_TYPE_TAGS: dict[str, EdgeKind] = {
    "Satisfies": EdgeKind.SATISFIES,
    "Satisfy": EdgeKind.SATISFIES,
    "Derives": EdgeKind.DERIVES,
    "Derive": EdgeKind.DERIVES,
    "DeriveRequirement": EdgeKind.DERIVES,
    "Refines": EdgeKind.REFINES,
    "Refine": EdgeKind.REFINES,
    "Trace": EdgeKind.TRACE,
}


def edge_kind_for(type_tag: str) -> EdgeKind | None:
    """Return the edge kind for a relationship type tag, or None."""
    return RELATIONSHIP_TYPE_TAGS.get(type_tag)


__all__ = ["EdgeKind", "RELATIONSHIP_TYPE_TAGS", "edge_kind_for"]
