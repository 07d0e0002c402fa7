"""
sysview - Single-source-of-truth element store with tree, table and graph views

sysview keeps one authoritative map of typed model elements fetched from
a remote CRUD backend, and derives every presentation (a definition/usage
tree, a flat table, a relationship graph) from that map plus one shared
selection. Mutations are confirmed by the backend before they are
applied, so every view always agrees with every other.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sysview")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from sysview.errors import (
    ConflictFailure,
    NetworkFailure,
    NotFoundFailure,
    StoreError,
    ValidationFailure,
)
from sysview.model import ElementKind, ElementRecord
from sysview.query import Page, PageState, QueryRequest
from sysview.store import ElementStore, SelectionSet

__all__ = [
    "__version__",
    "ElementKind",
    "ElementRecord",
    "ElementStore",
    "SelectionSet",
    "QueryRequest",
    "Page",
    "PageState",
    "StoreError",
    "NetworkFailure",
    "ValidationFailure",
    "ConflictFailure",
    "NotFoundFailure",
]
