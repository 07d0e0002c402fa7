"""Failure taxonomy for store and backend operations.

Every failed operation surfaces exactly one of these exceptions:

- NetworkFailure: backend unreachable, timed out, or failed server-side
- ValidationFailure: attributes rejected, with field-level messages
- ConflictFailure: duplicate key or element still referenced
- NotFoundFailure: stale or unknown id

Backends raise them; the store records and re-raises them untouched.
"""

from __future__ import annotations

from typing import Any, Mapping

NETWORK = "network"
VALIDATION = "validation"
CONFLICT = "conflict"
NOT_FOUND = "not_found"


class StoreError(Exception):
    """Base class for all taxonomy failures.

    Attributes:
        category: One of "network", "validation", "conflict", "not_found".
        title: Short summary.
        detail: Longer explanation, possibly empty.
        field_errors: Per-field messages (validation only).
        status_code: HTTP status that produced the error, if any.
    """

    category = NETWORK

    def __init__(
        self,
        title: str,
        detail: str = "",
        field_errors: Mapping[str, str] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(title if not detail else f"{title}: {detail}")
        self.title = title
        self.detail = detail
        self.field_errors: dict[str, str] = dict(field_errors or {})
        self.status_code = status_code

    def to_envelope(self) -> dict[str, Any]:
        """Serialize to the backend error envelope."""
        envelope: dict[str, Any] = {
            "statusCategory": self.category,
            "title": self.title,
            "detail": self.detail,
        }
        if self.field_errors:
            envelope["fieldErrors"] = dict(self.field_errors)
        return envelope


class NetworkFailure(StoreError):
    category = NETWORK


class ValidationFailure(StoreError):
    category = VALIDATION


class ConflictFailure(StoreError):
    category = CONFLICT


class NotFoundFailure(StoreError):
    category = NOT_FOUND


_BY_CATEGORY: dict[str, type[StoreError]] = {
    NETWORK: NetworkFailure,
    VALIDATION: ValidationFailure,
    CONFLICT: ConflictFailure,
    NOT_FOUND: NotFoundFailure,
}

HTTP_STATUS = {
    NETWORK: 503,
    VALIDATION: 400,
    CONFLICT: 409,
    NOT_FOUND: 404,
}


def category_for_status(status_code: int) -> str:
    """Map an HTTP status to a taxonomy category."""
    if status_code in (400, 422):
        return VALIDATION
    if status_code == 404:
        return NOT_FOUND
    if status_code == 409:
        return CONFLICT
    return NETWORK


def error_from_response(status_code: int, body: Any) -> StoreError:
    """Build a taxonomy error from an HTTP error response.

    Understands the envelope ``{statusCategory, title, detail, fieldErrors}``
    as well as the older ``{error, message, status, fieldErrors}`` shape.
    An explicit ``statusCategory`` wins over the HTTP status.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body, or anything else when decoding failed.

    Returns:
        The matching StoreError subclass instance.
    """
    data: Mapping[str, Any] = body if isinstance(body, Mapping) else {}

    category = data.get("statusCategory")
    if category not in _BY_CATEGORY:
        category = category_for_status(status_code)

    title = data.get("title") or data.get("error") or f"HTTP {status_code}"
    detail = data.get("detail") or data.get("message") or ""
    field_errors = data.get("fieldErrors") or data.get("errors") or {}
    if not isinstance(field_errors, Mapping):
        field_errors = {}

    return _BY_CATEGORY[category](
        str(title),
        str(detail),
        field_errors={str(k): str(v) for k, v in field_errors.items()},
        status_code=status_code,
    )


_MESSAGES = {
    NETWORK: "Backend unavailable, check the connection and retry",
    VALIDATION: "Request rejected, check the highlighted fields",
    CONFLICT: "Conflicts with an existing element",
    NOT_FOUND: "Element no longer exists",
}


def describe_error(error: StoreError) -> str:
    """One-line user-facing message for a failure."""
    message = _MESSAGES[error.category]
    if error.field_errors:
        fields = "; ".join(f"{k}: {v}" for k, v in sorted(error.field_errors.items()))
        return f"{message} ({fields})"
    if error.detail:
        return f"{message} ({error.detail})"
    return message


__all__ = [
    "StoreError",
    "NetworkFailure",
    "ValidationFailure",
    "ConflictFailure",
    "NotFoundFailure",
    "NETWORK",
    "VALIDATION",
    "CONFLICT",
    "NOT_FOUND",
    "HTTP_STATUS",
    "category_for_status",
    "error_from_response",
    "describe_error",
]
