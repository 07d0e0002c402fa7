"""
sysview.commands.show - Load elements from a backend and print a view.

- `sysview show tree`                     Definition/usage tree
- `sysview show table --format csv`       Flat table as CSV
- `sysview show graph --format json`      Nodes and edges as JSON
- `sysview show table --type RequirementDefinition --sort declaredName,asc`
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Mapping

from sysview.client.base import ElementBackend
from sysview.client.http import HttpElementBackend
from sysview.config import get_config
from sysview.errors import StoreError, describe_error
from sysview.query.pagination import FilterSpec, QueryRequest, SortSpec
from sysview.store.element_store import ElementStore
from sysview.views.serialize import (
    graph_to_dict,
    render_graph_text,
    render_table_text,
    render_tree_text,
    table_to_csv,
    table_to_dict,
    tree_to_dict,
)

VIEWS = ("tree", "table", "graph")


def build_backend(config: Mapping[str, Any], args: argparse.Namespace) -> ElementBackend:
    """Create the backend for a show run from config plus CLI overrides."""
    backend = config["backend"]
    return HttpElementBackend(
        base_url=getattr(args, "base_url", None) or backend["base_url"],
        project_id=getattr(args, "project", None) or backend["project_id"],
        timeout=float(backend["timeout"]),
    )


def build_request(args: argparse.Namespace, default_page_size: int) -> QueryRequest:
    """Translate CLI flags into a QueryRequest."""
    return QueryRequest(
        page=args.page,
        page_size=args.size if args.size is not None else default_page_size,
        sort=tuple(SortSpec.parse(s) for s in args.sort or ()),
        filters=tuple(FilterSpec.parse(f) for f in args.filter or ()),
        search=args.search or "",
        type_tag=args.type,
    )


async def load_store(
    backend: ElementBackend, request: QueryRequest, all_pages: bool
) -> ElementStore:
    """Fill a fresh store with one page, or every page from ``request.page`` on."""
    store = ElementStore(backend, page_size=request.page_size)
    try:
        await store.query(request)
        if all_pages:
            while await store.load_next_page() is not None:
                pass
    finally:
        await backend.aclose()
    return store


def render(store: ElementStore, view: str, fmt: str) -> str:
    """Render one projection of ``store`` in the requested format."""
    if view == "tree":
        model = store.get_tree_model()
        if fmt == "json":
            return json.dumps(tree_to_dict(model), indent=2)
        return render_tree_text(model)

    if view == "table":
        table = store.get_table_model()
        if fmt == "json":
            return json.dumps(table_to_dict(table), indent=2)
        if fmt == "csv":
            return table_to_csv(table).rstrip("\r\n")
        return render_table_text(table)

    graph = store.get_graph_model()
    if fmt == "json":
        return json.dumps(graph_to_dict(graph), indent=2)
    return render_graph_text(graph)


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    view = getattr(args, "view", None)
    if view not in VIEWS:
        print("Usage: sysview show <tree|table|graph>", file=sys.stderr)
        return 1
    if args.format == "csv" and view != "table":
        print("Error: --format csv is only available for the table view", file=sys.stderr)
        return 1

    config = get_config(getattr(args, "config", None))

    try:
        request = build_request(args, int(config["query"]["page_size"]))
        backend = build_backend(config, args)
        store = asyncio.run(load_store(backend, request, args.all_pages))
    except StoreError as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 1

    for element_id in dict.fromkeys(args.select or ()):
        store.select(element_id, exclusive=False)

    output = render(store, view, args.format)
    if output:
        print(output)

    state = store.page_state
    if state is not None and args.format == "text" and not args.quiet:
        print(
            f"\n{len(store)} element(s) loaded; page {state.page + 1} of "
            f"{max(state.total_pages, 1)} ({state.total_count} total)",
            file=sys.stderr,
        )
    return 0
