"""In-process element repository.

Reference implementation of the backend contract, used by the Flask
development server and by ``InMemoryBackend``. It owns id assignment,
paging, sorting, filtering, search, and the validation/conflict rules.

Records are copied on the way in and on the way out, so callers never
share mutable state with the repository.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Container, Iterator, Mapping
from uuid import uuid4

from sysview.codec import normalize_attributes, split_payload
from sysview.errors import ConflictFailure, NotFoundFailure, ValidationFailure
from sysview.model.ElementRecord import REFERENCE_FIELDS, ElementRecord
from sysview.query.pagination import Page, QueryRequest

logger = logging.getLogger(__name__)

# Attribute that must be unique within one type tag.
UNIQUE_ATTRIBUTE = "declaredShortName"

_TYPE_TAG_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class ElementRepository:
    """Authoritative element storage for the reference backend."""

    def __init__(self) -> None:
        self._elements: dict[str, ElementRecord] = {}

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def iter_elements(self) -> Iterator[ElementRecord]:
        """Iterate copies of all elements in insertion order."""
        for record in self._elements.values():
            yield record.clone()

    # ─────────────────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────────────────

    def create(self, type_tag: Any, attributes: Any) -> ElementRecord:
        """Create an element with a fresh server-assigned id.

        Any ``id`` inside ``attributes`` is a client placeholder and is
        discarded.

        Raises:
            ValidationFailure: Missing/invalid type tag or non-object attributes.
            ConflictFailure: Duplicate unique attribute within the type tag.
        """
        errors: dict[str, str] = {}
        if not isinstance(type_tag, str) or not _TYPE_TAG_RE.match(type_tag):
            errors["typeTag"] = "typeTag is required and must be an identifier"
        if not isinstance(attributes, Mapping):
            errors["attributes"] = "attributes must be an object"
        if errors:
            raise ValidationFailure("Validation failed", field_errors=errors)

        clean = normalize_attributes(type_tag, attributes)
        clean.pop("id", None)
        self._check_unique(type_tag, clean)

        element_id = self._new_id(type_tag)
        record = ElementRecord(id=element_id, type_tag=type_tag, attributes=clean)
        self._elements[element_id] = record.clone()
        logger.debug("created %s %s", type_tag, element_id)
        return record

    def get(self, element_id: str) -> ElementRecord:
        """Fetch a copy of one element.

        Raises:
            NotFoundFailure: If the id is unknown.
        """
        record = self._elements.get(element_id)
        if record is None:
            raise NotFoundFailure("Element not found", f"no element with id {element_id}")
        return record.clone()

    def update(self, element_id: str, changes: Any) -> ElementRecord:
        """Merge ``changes`` into an element and return the full result.

        Raises:
            NotFoundFailure: If the id is unknown.
            ValidationFailure: If ``changes`` is not an object or tries to
                change the id or type tag.
            ConflictFailure: Duplicate unique attribute within the type tag.
        """
        current = self._elements.get(element_id)
        if current is None:
            raise NotFoundFailure("Element not found", f"no element with id {element_id}")
        if not isinstance(changes, Mapping):
            raise ValidationFailure(
                "Validation failed", field_errors={"attributes": "attributes must be an object"}
            )

        errors = {
            key: f"{key} is immutable"
            for key in ("id", "typeTag")
            if key in changes and changes[key] != (current.id if key == "id" else current.type_tag)
        }
        if errors:
            raise ValidationFailure("Validation failed", field_errors=errors)

        clean = normalize_attributes(current.type_tag, changes)
        clean.pop("id", None)
        clean.pop("typeTag", None)
        self._check_unique(current.type_tag, clean, exclude_id=element_id)

        updated = current.merged(clean)
        self._elements[element_id] = updated
        return updated.clone()

    def delete(self, element_id: str) -> bool:
        """Remove an element that nothing else points at.

        Returns:
            True if something was removed; deleting an unknown id is a no-op.

        Raises:
            ConflictFailure: If a usage or relationship still references the
                element. Delete the referencing elements first.
        """
        if element_id not in self._elements:
            return False
        referrers = self.referrers(element_id)
        if referrers:
            names = ", ".join(r.id for r in referrers)
            raise ConflictFailure(
                "Element is referenced",
                f"Cannot delete {element_id}: referenced by {len(referrers)} element(s) ({names})",
            )
        del self._elements[element_id]
        return True

    def referrers(self, element_id: str) -> list[ElementRecord]:
        """Elements whose reference fields name ``element_id``, in insertion order."""
        return [
            record.clone()
            for record in self._elements.values()
            if record.id != element_id
            and any(record.reference(name) == element_id for name in REFERENCE_FIELDS)
        ]

    def clear(self) -> None:
        self._elements.clear()

    # ─────────────────────────────────────────────────────────────────────────
    # Export / import
    # ─────────────────────────────────────────────────────────────────────────

    def export_elements(self) -> list[dict[str, Any]]:
        """Every element as ``{id, typeTag, attributes}``, in insertion order."""
        return [record.to_dict() for record in self._elements.values()]

    def import_elements(self, payloads: Any) -> list[ElementRecord]:
        """Add previously exported elements, keeping their ids.

        Ids are kept so references between the imported elements still
        resolve. An element without an id gets a fresh one. The batch is
        checked as a whole first; on any failure nothing is stored.

        Args:
            payloads: List of element objects in any wire shape.

        Returns:
            Copies of the imported records, in input order.

        Raises:
            ValidationFailure: Not a list, or an item is malformed.
            ConflictFailure: An id is already taken (here or earlier in the
                batch), or a unique attribute is duplicated.
        """
        if not isinstance(payloads, list):
            raise ValidationFailure(
                "Validation failed", field_errors={"elements": "elements must be a list"}
            )

        parsed: list[tuple[Any, str, dict[str, Any]]] = []
        errors: dict[str, str] = {}
        for index, payload in enumerate(payloads):
            if not isinstance(payload, Mapping):
                errors[f"elements[{index}]"] = "element must be an object"
                continue
            element_id, type_tag, attributes = split_payload(payload)
            if not isinstance(type_tag, str) or not _TYPE_TAG_RE.match(type_tag):
                errors[f"elements[{index}].typeTag"] = "typeTag must be an identifier"
                continue
            parsed.append((element_id, type_tag, normalize_attributes(type_tag, attributes)))
        if errors:
            raise ValidationFailure("Validation failed", field_errors=errors)

        staged: dict[str, ElementRecord] = {}
        unique = {
            (r.type_tag, r.attributes.get(UNIQUE_ATTRIBUTE))
            for r in self._elements.values()
            if r.attributes.get(UNIQUE_ATTRIBUTE) not in (None, "")
        }
        for element_id, type_tag, attributes in parsed:
            attributes.pop("id", None)
            if element_id:
                element_id = str(element_id)
                if element_id in self._elements or element_id in staged:
                    raise ConflictFailure("Duplicate id", f"{element_id} already exists")
            else:
                element_id = self._new_id(type_tag, reserved=staged)

            value = attributes.get(UNIQUE_ATTRIBUTE)
            if value not in (None, ""):
                if (type_tag, value) in unique:
                    raise ConflictFailure(
                        "Duplicate key",
                        f"{UNIQUE_ATTRIBUTE} {value!r} already used in {type_tag}",
                        field_errors={UNIQUE_ATTRIBUTE: "already exists"},
                    )
                unique.add((type_tag, value))

            staged[element_id] = ElementRecord(
                id=element_id, type_tag=type_tag, attributes=attributes
            )

        self._elements.update(staged)
        logger.info("imported %d element(s)", len(staged))
        return [record.clone() for record in staged.values()]

    # ─────────────────────────────────────────────────────────────────────────
    # Query
    # ─────────────────────────────────────────────────────────────────────────

    def query(self, request: QueryRequest) -> Page:
        """Filter, search, sort and page the elements.

        Raises:
            ValidationFailure: If the request is out of range.
        """
        request.validate()

        matches = [r for r in self._elements.values() if _matches(r, request)]
        # Stable sorts applied least significant key first.
        for spec in reversed(request.sort):
            matches.sort(
                key=lambda r, f=spec.field: _sort_key(r, f),
                reverse=spec.direction == "desc",
            )

        start = request.page * request.page_size
        content = [r.clone() for r in matches[start : start + request.page_size]]
        return Page.build(content, len(matches), request)

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _new_id(self, type_tag: str, reserved: Container[str] = ()) -> str:
        prefix = re.sub(r"[^a-z]", "", type_tag.lower())[:12] or "element"
        while True:
            candidate = f"{prefix}-{uuid4().hex[:12]}"
            if candidate not in self._elements and candidate not in reserved:
                return candidate

    def _check_unique(
        self, type_tag: str, attributes: Mapping[str, Any], exclude_id: str | None = None
    ) -> None:
        value = attributes.get(UNIQUE_ATTRIBUTE)
        if value in (None, ""):
            return
        for record in self._elements.values():
            if record.id == exclude_id or record.type_tag != type_tag:
                continue
            if record.attributes.get(UNIQUE_ATTRIBUTE) == value:
                raise ConflictFailure(
                    "Duplicate key",
                    f"{UNIQUE_ATTRIBUTE} {value!r} already used by {record.id}",
                    field_errors={UNIQUE_ATTRIBUTE: "already exists"},
                )


def _field_value(record: ElementRecord, name: str) -> Any:
    if name == "id":
        return record.id
    if name in ("typeTag", "eClass"):
        return record.type_tag
    return record.attributes.get(name)


def _matches(record: ElementRecord, request: QueryRequest) -> bool:
    if request.type_tag and record.type_tag != request.type_tag:
        return False
    for spec in request.filters:
        value = _field_value(record, spec.field)
        if value is None or str(value) != spec.value:
            return False
    needle = request.search.strip().lower()
    if needle:
        haystack = [record.id] + [v for v in record.attributes.values() if isinstance(v, str)]
        if not any(needle in text.lower() for text in haystack):
            return False
    return True


def _sort_key(record: ElementRecord, name: str) -> tuple[int, float, str]:
    # Missing values sort last in ascending order; numbers before text.
    value = _field_value(record, name)
    if value is None:
        return (2, 0.0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, float(value), "")
    return (1, 0.0, str(value).lower())


__all__ = ["UNIQUE_ATTRIBUTE", "ElementRepository"]
