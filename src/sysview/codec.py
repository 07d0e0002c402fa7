"""Wire codec - decode backend payloads into ElementRecords and Pages.

Backends have shipped a few payload shapes over time:

- ``{"id", "typeTag", "attributes": {...}}`` (current)
- ``{"id", "eClass", ...flat attributes}``
- ``{"elementId", "eClass", "properties": {...}}``

All of them decode to the same ElementRecord. Legacy reference field
names are folded into the canonical ``definitionRef`` / ``sourceRef`` /
``targetRef`` here, so nothing downstream sees the old spellings.
"""

from __future__ import annotations

from typing import Any, Mapping

from sysview.errors import NetworkFailure
from sysview.model.ElementRecord import (
    DEFINITION_REF,
    SOURCE_REF,
    TARGET_REF,
    ElementKind,
    ElementRecord,
    classify,
)
from sysview.query.pagination import Page, QueryRequest

_ENVELOPE_KEYS = {"id", "elementId", "typeTag", "eClass", "attributes", "properties"}

_DEFINITION_ALIASES = ("of", "requirementDefinition")
_RELATIONSHIP_ALIASES = {
    "source": SOURCE_REF,
    "target": TARGET_REF,
    "fromId": SOURCE_REF,
    "toId": TARGET_REF,
}


def normalize_attributes(type_tag: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Fold legacy reference aliases into canonical field names.

    A canonical field that is already present is never overwritten by
    an alias.

    Args:
        type_tag: Element type, used to decide which aliases apply.
        attributes: Raw attribute mapping.

    Returns:
        New dict with canonical reference names.
    """
    result = dict(attributes)
    for alias in _DEFINITION_ALIASES:
        if alias in result:
            value = result.pop(alias)
            result.setdefault(DEFINITION_REF, value)
    if classify(type_tag) == ElementKind.RELATIONSHIP:
        for alias, canonical in _RELATIONSHIP_ALIASES.items():
            if alias in result:
                value = result.pop(alias)
                result.setdefault(canonical, value)
    return result


def split_payload(payload: Mapping[str, Any]) -> tuple[Any, Any, dict[str, Any]]:
    """Pull ``(id, typeTag, attributes)`` out of any supported element shape.

    A missing id or type tag comes back as None. Attribute names are
    returned as sent; see ``normalize_attributes``.
    """
    element_id = payload.get("id") or payload.get("elementId")
    type_tag = payload.get("typeTag") or payload.get("eClass")
    if isinstance(payload.get("attributes"), Mapping):
        attributes = dict(payload["attributes"])
    elif isinstance(payload.get("properties"), Mapping):
        attributes = dict(payload["properties"])
    else:
        attributes = {k: v for k, v in payload.items() if k not in _ENVELOPE_KEYS}
    return element_id, type_tag, attributes


def record_from_payload(payload: Any) -> ElementRecord:
    """Decode one element payload.

    Raises:
        NetworkFailure: If the payload has no id or type tag; the server
            answered with something that is not an element.
    """
    if not isinstance(payload, Mapping):
        raise NetworkFailure(
            "Malformed response", f"expected an element object, got {type(payload).__name__}"
        )

    element_id, type_tag, attributes = split_payload(payload)
    if not element_id or not type_tag:
        raise NetworkFailure("Malformed response", "element is missing id or typeTag")

    return ElementRecord(
        id=str(element_id),
        type_tag=str(type_tag),
        attributes=normalize_attributes(str(type_tag), attributes),
    )


def page_from_payload(body: Any, request: QueryRequest) -> Page:
    """Decode a listing response.

    Accepts the current field names (``pageSize``, ``totalCount``,
    ``isFirstPage``...), the older ones (``size``, ``totalElements``,
    ``first``...), and a bare JSON array of elements.

    Raises:
        NetworkFailure: If the body is not a page, ``content`` is not a
            list, a counter is not an integer or a flag is not a boolean.
    """
    if isinstance(body, list):
        content = [record_from_payload(item) for item in body]
        return Page.build(content, len(content), request.with_page(0))

    if not isinstance(body, Mapping):
        raise NetworkFailure("Malformed response", "expected a page object")

    raw = body.get("content")
    if raw is None:
        raw = body.get("data", [])
    if not isinstance(raw, list):
        raise NetworkFailure(
            "Malformed response", f"page content must be a list, got {type(raw).__name__}"
        )
    content = [record_from_payload(item) for item in raw]

    page = _as_int(_first(body, "page", default=request.page), "page")
    page_size = _as_int(_first(body, "pageSize", "size", default=request.page_size), "pageSize")
    total_count = _as_int(
        _first(body, "totalCount", "totalElements", "total", default=len(content)), "totalCount"
    )
    total_pages = _first(body, "totalPages", default=None)
    if total_pages is None:
        total_pages = -(-total_count // page_size) if total_count and page_size > 0 else 0
    total_pages = _as_int(total_pages, "totalPages")

    is_first = _as_flag(_first(body, "isFirstPage", "first", default=page == 0), "isFirstPage")
    is_last = _as_flag(
        _first(body, "isLastPage", "last", default=page >= total_pages - 1), "isLastPage"
    )

    return Page(
        content=content,
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
        is_first_page=is_first,
        is_last_page=is_last,
    )


def _first(body: Mapping[str, Any], *keys: str, default: Any) -> Any:
    for key in keys:
        if body.get(key) is not None:
            return body[key]
    return default


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass but never a valid counter.
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise NetworkFailure("Malformed response", f"{name} must be an integer, got {value!r}")


def _as_flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise NetworkFailure("Malformed response", f"{name} must be a boolean, got {value!r}")
    return value


__all__ = ["normalize_attributes", "split_payload", "record_from_payload", "page_from_payload"]
