"""Element Store - single source of truth for element data.

Holds the authoritative ``id -> ElementRecord`` map, the shared selection
and the state of the last page fetch. Every presentation surface reads its
view model from here, and every mutation goes through here.

Mutations are confirm-then-apply: the backend call is awaited first and
the map is touched only after it succeeds. A failed call therefore leaves
the map exactly as it was, and callers can retry without rolling back.

Concurrent calls are applied in response-arrival order. Two racing
``update`` calls on one id end with whichever response landed last.
"""

from __future__ import annotations

import copy
import logging
from types import MappingProxyType
from typing import Any, Awaitable, Mapping, TypeVar

from sysview.client.base import ElementBackend
from sysview.errors import NotFoundFailure, StoreError
from sysview.model.ElementRecord import ElementRecord
from sysview.model.mutations import DEFAULT_MAX_ENTRIES, ChangeEntry, ChangeLog
from sysview.query.pagination import DEFAULT_PAGE_SIZE, Page, PageState, QueryRequest
from sysview.store.selection import SelectionSet
from sysview.validation import ValidationResult, validate_elements
from sysview.views.graph import GraphModel, build_graph_model
from sysview.views.table import TableModel, build_table_model
from sysview.views.tree import TreeModel, build_tree_model

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ElementStore:
    """Authoritative in-memory element map backed by a remote service.

    The store is an ordinary object handed to whoever needs it, so tests
    and independent sessions each get their own.

    Args:
        backend: The element backend collaborator.
        selection: Selection to share; a new empty one if omitted.
        page_size: Default page size for loads without an explicit request.
        change_log_size: Entries kept in the change log; None keeps all.
    """

    def __init__(
        self,
        backend: ElementBackend,
        selection: SelectionSet | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        change_log_size: int | None = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._backend = backend
        self._elements: dict[str, ElementRecord] = {}
        self._selection = selection if selection is not None else SelectionSet()
        self._page_size = page_size
        self._page_state: PageState | None = None
        self._in_flight = 0
        self._last_error: StoreError | None = None
        self._change_log = ChangeLog(change_log_size)

    # ─────────────────────────────────────────────────────────────────────────
    # Read access
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def elements(self) -> Mapping[str, ElementRecord]:
        """Read-only view of the element map, in insertion order."""
        return MappingProxyType(self._elements)

    def get(self, element_id: str) -> ElementRecord | None:
        """Return a copy of one record, or None if not resident."""
        record = self._elements.get(element_id)
        return record.clone() if record is not None else None

    def records(self) -> list[ElementRecord]:
        """Copies of all records in insertion order."""
        return [r.clone() for r in self._elements.values()]

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Deep, JSON-serializable copy of the element map."""
        return {element_id: r.to_dict() for element_id, r in self._elements.items()}

    @property
    def backend(self) -> ElementBackend:
        return self._backend

    @property
    def selection(self) -> SelectionSet:
        return self._selection

    @property
    def change_log(self) -> ChangeLog:
        return self._change_log

    # ─────────────────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def loading(self) -> bool:
        """True while at least one backend call is in flight."""
        return self._in_flight > 0

    @property
    def last_error(self) -> StoreError | None:
        """Most recent failure; cleared when a new operation starts."""
        return self._last_error

    @property
    def page_state(self) -> PageState | None:
        """Pagination state of the last successful load, if any."""
        return self._page_state

    def status(self) -> dict[str, Any]:
        error = self._last_error
        return {
            "loading": self.loading,
            "lastError": error.to_envelope() if error is not None else None,
            "elementCount": len(self._elements),
            "page": self._page_state.to_dict() if self._page_state is not None else None,
        }

    # ─────────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────────

    async def create(
        self, type_tag: str, attributes: Mapping[str, Any] | None = None
    ) -> ElementRecord:
        """Create an element through the backend and insert it.

        The server-assigned id in the response is the one stored; any
        placeholder id the caller put in ``attributes`` is not.

        Returns:
            A copy of the stored record.

        Raises:
            StoreError: Backend failure; the map is unchanged.
        """
        payload = copy.deepcopy(dict(attributes or {}))
        response = await self._call("create", type_tag, self._backend.create(type_tag, payload))

        record = response.clone()
        before = self._elements.get(record.id)
        self._elements[record.id] = record
        self._log("create", record.id, before, record)
        return record.clone()

    async def update(self, element_id: str, changes: Mapping[str, Any]) -> ElementRecord:
        """Send changed attributes to the backend and merge the response.

        The merge overwrites attribute by attribute, so attributes absent
        from the response survive. If the element was deleted locally
        while the call was in flight, the response is not applied.

        Returns:
            A copy of the merged record.

        Raises:
            NotFoundFailure: If ``element_id`` is not resident.
            StoreError: Backend failure; the map is unchanged.
        """
        if element_id not in self._elements:
            error = NotFoundFailure("Element not found", f"{element_id} is not in the store")
            self._last_error = error
            raise error

        payload = copy.deepcopy(dict(changes))
        response = await self._call("update", element_id, self._backend.update(element_id, payload))

        current = self._elements.get(element_id)
        if current is None:
            logger.info("update for %s arrived after it was deleted; not applied", element_id)
            return ElementRecord(element_id, response.type_tag, copy.deepcopy(response.attributes))

        if response.id != element_id:
            logger.warning(
                "update response for %s carried id %s; keeping %s",
                element_id,
                response.id,
                element_id,
            )

        merged = current.merged(response.attributes)
        self._elements[element_id] = merged
        self._log("update", element_id, current, merged)
        return merged.clone()

    async def delete(self, element_id: str) -> None:
        """Delete an element through the backend, then drop it locally.

        The id is also removed from the selection. Deleting an id that is
        not resident still calls the backend.

        Raises:
            StoreError: Backend failure; map and selection are unchanged.
        """
        await self._call("delete", element_id, self._backend.delete(element_id))

        before = self._elements.pop(element_id, None)
        self._selection.discard(element_id)
        if before is not None:
            self._log("delete", element_id, before, None)

    async def reload(self, element_id: str) -> ElementRecord:
        """Fetch one element from the backend and merge it in.

        Raises:
            StoreError: Backend failure; the map is unchanged.
        """
        response = await self._call("reload", element_id, self._backend.get(element_id))
        return self._put_record(response, "load").clone()

    # ─────────────────────────────────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────────────────────────────────

    async def query(self, request: QueryRequest | None = None) -> PageState:
        """Fetch one page and fold it into the map.

        Loads are additive: resident elements missing from the page stay,
        including on a page turn or a narrower type filter.

        Returns:
            The new pagination state.

        Raises:
            ValidationFailure: Out-of-range request; no call is made.
            StoreError: Backend failure; map and page state are unchanged.
        """
        if request is None:
            request = QueryRequest(page_size=self._page_size)
        try:
            request.validate()
        except StoreError as e:
            self._last_error = e
            raise

        target = request.type_tag or "*"
        page = await self._call("load", target, self._backend.list_elements(request))

        self._merge_page(page)
        self._page_state = PageState.from_page(page, request)
        logger.debug(
            "loaded page %d of %s: %d elements (%d total)",
            page.page,
            target,
            len(page.content),
            page.total_count,
        )
        return self._page_state

    async def load_all(self, request: QueryRequest | None = None) -> PageState:
        """Load a page of elements of every type."""
        request = request if request is not None else QueryRequest(page_size=self._page_size)
        return await self.query(request.with_type(None))

    async def load_by_type(self, type_tag: str, request: QueryRequest | None = None) -> PageState:
        """Load a page of elements of one type."""
        request = request if request is not None else QueryRequest(page_size=self._page_size)
        return await self.query(request.with_type(type_tag))

    async def load_next_page(self) -> PageState | None:
        """Load the page after the last one fetched.

        Returns:
            The new pagination state, or None when already on the last page.
        """
        state = self._page_state
        if state is None:
            return await self.query()
        if state.is_last_page:
            return None
        return await self.query(state.request.with_page(state.page + 1))

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    def select(self, element_id: str, exclusive: bool = True) -> None:
        self._selection.select(element_id, exclusive=exclusive)

    def clear_selection(self) -> None:
        self._selection.clear()

    def get_selection(self) -> frozenset[str]:
        return self._selection.all()

    # ─────────────────────────────────────────────────────────────────────────
    # Projections
    # ─────────────────────────────────────────────────────────────────────────

    def get_tree_model(self) -> TreeModel:
        return build_tree_model(self._elements, self._selection.all())

    def get_table_model(self) -> TableModel:
        return build_table_model(self._elements, self._selection.all())

    def get_graph_model(self) -> GraphModel:
        return build_graph_model(self._elements, self._selection.all())

    def validate(self) -> ValidationResult:
        """Run the static model checks over the resident elements.

        Only what is loaded is checked, so a partial load can report
        references to elements that exist on the backend but not here.
        """
        return validate_elements(self._elements)

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    async def _call(self, operation: str, target: str, pending: Awaitable[T]) -> T:
        """Await a backend call with loading/error bookkeeping."""
        self._in_flight += 1
        self._last_error = None
        try:
            result = await pending
        except StoreError as e:
            self._last_error = e
            logger.warning("%s %s failed (%s): %s", operation, target, e.category, e)
            raise
        finally:
            self._in_flight -= 1
        logger.debug("%s %s ok", operation, target)
        return result

    def _put_record(self, incoming: ElementRecord, operation: str) -> ElementRecord:
        # Known ids are overwritten in place; dict order keeps their position.
        current = self._elements.get(incoming.id)
        if current == incoming:
            return current
        record = incoming.clone()
        self._elements[incoming.id] = record
        self._log(operation, incoming.id, current, record)
        return record

    def _merge_page(self, page: Page) -> None:
        for incoming in page.content:
            self._put_record(incoming, "load")

    def _log(
        self,
        operation: str,
        element_id: str,
        before: ElementRecord | None,
        after: ElementRecord | None,
    ) -> None:
        self._change_log.append(
            ChangeEntry(
                operation=operation,
                element_id=element_id,
                before=before.to_dict() if before is not None else None,
                after=after.to_dict() if after is not None else None,
            )
        )


__all__ = ["ElementStore"]
