"""Store module - the single source of truth and its selection.

Exports:
- ElementStore: Authoritative element map with async CRUD and projections
- SelectionSet: Shared set of selected ids
"""

from sysview.store.element_store import ElementStore
from sysview.store.selection import SelectionSet

__all__ = ["ElementStore", "SelectionSet"]
