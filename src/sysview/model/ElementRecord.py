"""ElementRecord - Canonical unit of model data.

This module provides the core data structures held by the element store:
- ElementKind: Coarse classification of type tags
- ElementRecord: One typed element with an open attribute bag
- Reference field names shared by the store, projections, and wire codecs
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from sysview.model.relations import RELATIONSHIP_TYPE_TAGS

DEFINITION_REF = "definitionRef"
SOURCE_REF = "sourceRef"
TARGET_REF = "targetRef"

REFERENCE_FIELDS = (DEFINITION_REF, SOURCE_REF, TARGET_REF)

# Checked in order; the id is the last resort.
LABEL_ATTRIBUTES = ("displayName", "declaredName", "name")


class ElementKind(Enum):
    """Coarse classification of an element's type tag."""

    DEFINITION = "definition"
    USAGE = "usage"
    RELATIONSHIP = "relationship"
    OTHER = "other"


def classify(type_tag: str) -> ElementKind:
    """Classify a type tag.

    Relationship tags are matched first, so a relationship kind whose
    name happens to end in ``Usage`` is still treated as a link.

    Args:
        type_tag: The element's type discriminator.

    Returns:
        The ElementKind for the tag.
    """
    if type_tag in RELATIONSHIP_TYPE_TAGS:
        return ElementKind.RELATIONSHIP
    if type_tag.endswith("Definition"):
        return ElementKind.DEFINITION
    if type_tag.endswith("Usage"):
        return ElementKind.USAGE
    return ElementKind.OTHER


@dataclass
class ElementRecord:
    """A typed element held by the store.

    The store treats ``attributes`` as an opaque bag; only projections
    read individual attributes.

    Attributes:
        id: Stable identifier assigned by the backend.
        type_tag: Discriminator naming the element's kind.
        attributes: Open mapping of attribute name to value.
    """

    id: str
    type_tag: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> ElementKind:
        """Classification derived from the type tag."""
        return classify(self.type_tag)

    @property
    def label(self) -> str:
        """Display label, falling back to the id."""
        for key in LABEL_ATTRIBUTES:
            value = self.attributes.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return self.id

    def get(self, key: str, default: Any = None) -> Any:
        """Get a single attribute."""
        return self.attributes.get(key, default)

    def reference(self, key: str) -> str | None:
        """Get a reference field, normalizing blanks to None."""
        value = self.attributes.get(key)
        if value is None or value == "":
            return None
        return str(value)

    @property
    def definition_ref(self) -> str | None:
        return self.reference(DEFINITION_REF)

    @property
    def source_ref(self) -> str | None:
        return self.reference(SOURCE_REF)

    @property
    def target_ref(self) -> str | None:
        return self.reference(TARGET_REF)

    def merged(self, changes: Mapping[str, Any]) -> ElementRecord:
        """Return a new record with ``changes`` overwritten attribute by attribute.

        Attributes not named in ``changes`` survive unchanged. The id and
        type tag are never altered by a merge.
        """
        attributes = copy.deepcopy(self.attributes)
        attributes.update(copy.deepcopy(dict(changes)))
        return ElementRecord(id=self.id, type_tag=self.type_tag, attributes=attributes)

    def clone(self) -> ElementRecord:
        """Create an independent deep copy."""
        return ElementRecord(
            id=self.id,
            type_tag=self.type_tag,
            attributes=copy.deepcopy(self.attributes),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape ``{id, typeTag, attributes}``."""
        return {
            "id": self.id,
            "typeTag": self.type_tag,
            "attributes": copy.deepcopy(self.attributes),
        }


__all__ = [
    "DEFINITION_REF",
    "SOURCE_REF",
    "TARGET_REF",
    "REFERENCE_FIELDS",
    "LABEL_ATTRIBUTES",
    "ElementKind",
    "ElementRecord",
    "classify",
]
