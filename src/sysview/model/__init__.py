"""Model module - Element data structures.

Exports:
- ElementRecord: One typed element with an open attribute bag
- ElementKind: Definition / usage / relationship / other classification
- EdgeKind: Enum of link types
- BrokenReference: Reference to a non-resident element
- ChangeEntry, ChangeLog: Journal of applied store changes
"""

from sysview.model.ElementRecord import (
    DEFINITION_REF,
    LABEL_ATTRIBUTES,
    REFERENCE_FIELDS,
    SOURCE_REF,
    TARGET_REF,
    ElementKind,
    ElementRecord,
    classify,
)
from sysview.model.mutations import BrokenReference, ChangeEntry, ChangeLog
from sysview.model.relations import RELATIONSHIP_TYPE_TAGS, EdgeKind, edge_kind_for

__all__ = [
    "DEFINITION_REF",
    "SOURCE_REF",
    "TARGET_REF",
    "REFERENCE_FIELDS",
    "LABEL_ATTRIBUTES",
    "ElementKind",
    "ElementRecord",
    "classify",
    "EdgeKind",
    "RELATIONSHIP_TYPE_TAGS",
    "edge_kind_for",
    "BrokenReference",
    "ChangeEntry",
    "ChangeLog",
]
