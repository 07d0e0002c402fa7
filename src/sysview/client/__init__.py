"""Client module - Element backend collaborators.

Exports:
- ElementBackend: Abstract backend contract
- HttpElementBackend: httpx-based remote backend
- InMemoryBackend: In-process backend over ElementRepository
"""

from sysview.client.base import ElementBackend
from sysview.client.http import DEFAULT_BASE_URL, HttpElementBackend
from sysview.client.memory import InMemoryBackend
from sysview.codec import normalize_attributes, page_from_payload, record_from_payload

__all__ = [
    "ElementBackend",
    "HttpElementBackend",
    "InMemoryBackend",
    "DEFAULT_BASE_URL",
    "normalize_attributes",
    "page_from_payload",
    "record_from_payload",
]
