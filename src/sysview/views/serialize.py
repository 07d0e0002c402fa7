"""Projection serialization - export view models to JSON, CSV and text.

Functions here turn the dataclass view models into plain structures for
renderers, the REST layer and the CLI.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from sysview.views.graph import GraphModel
from sysview.views.table import TableModel
from sysview.views.tree import TreeModel, TreeNode


def _tree_node_to_dict(node: TreeNode) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": node.id,
        "label": node.label,
        "typeTag": node.type_tag,
        "kind": node.kind,
        "selected": node.selected,
        "children": [_tree_node_to_dict(child) for child in node.children],
    }
    if node.orphan:
        result["orphan"] = True
    return result


def tree_to_dict(model: TreeModel) -> dict[str, Any]:
    """Serialize a TreeModel to a JSON-compatible dict."""
    return {
        "roots": [_tree_node_to_dict(root) for root in model.roots],
        "brokenReferences": [_broken_to_dict(b) for b in model.broken_references],
    }


def table_to_dict(model: TableModel) -> dict[str, Any]:
    """Serialize a TableModel to a JSON-compatible dict."""
    return {
        "columns": list(model.columns),
        "rows": [row.as_dict() for row in model.rows],
        "selected": [row.id for row in model.rows if row.selected],
    }


def graph_to_dict(model: GraphModel) -> dict[str, Any]:
    """Serialize a GraphModel to a JSON-compatible dict."""
    return {
        "nodes": [
            {
                "id": n.id,
                "label": n.label,
                "typeTag": n.type_tag,
                "kind": n.kind,
                "selected": n.selected,
            }
            for n in model.nodes
        ],
        "edges": [
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "kind": e.kind.value,
                "label": e.label,
            }
            for e in model.edges
        ],
        "selected": list(model.selected_ids),
        "brokenReferences": [_broken_to_dict(b) for b in model.broken_references],
    }


def _broken_to_dict(broken: Any) -> dict[str, str]:
    return {
        "sourceId": broken.source_id,
        "targetId": broken.target_id,
        "edgeKind": broken.edge_kind,
    }


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def table_to_csv(model: TableModel) -> str:
    """Generate a CSV export of the table model.

    Nested attribute values are written as JSON.

    Returns:
        CSV string with a header row of ``model.columns``.
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(model.columns)
    for row in model.rows:
        flat = row.as_dict()
        writer.writerow([_cell(flat.get(column)) for column in model.columns])
    return output.getvalue()


def render_tree_text(model: TreeModel) -> str:
    """Render the tree as indented text, one node per line.

    Selected nodes are marked with ``*``; orphans with ``(orphan)``.
    """
    lines: list[str] = []

    def _render(node: TreeNode, indent: int) -> None:
        marker = "*" if node.selected else "-"
        suffix = " (orphan)" if node.orphan else ""
        label = node.label if node.label == node.id else f"{node.label} [{node.id}]"
        lines.append(f"{'  ' * indent}{marker} {label} <{node.type_tag}>{suffix}")
        for child in node.children:
            _render(child, indent + 1)

    for root in model.roots:
        _render(root, 0)
    return "\n".join(lines)


def render_table_text(model: TableModel, columns: list[str] | None = None) -> str:
    """Render rows as aligned plain-text columns.

    Args:
        model: The table model.
        columns: Columns to show; all of ``model.columns`` when None.
    """
    columns = list(columns) if columns is not None else list(model.columns)
    cells = [[_cell(row.as_dict().get(c)) for c in columns] for row in model.rows]
    widths = [len(c) for c in columns]
    for line in cells:
        widths = [max(w, len(v)) for w, v in zip(widths, line)]

    def _fmt(values: list[str], marker: str) -> str:
        padded = "  ".join(v.ljust(w) for v, w in zip(values, widths))
        return f"{marker} {padded}".rstrip()

    lines = [_fmt(columns, " ")]
    for row, line in zip(model.rows, cells):
        lines.append(_fmt(line, "*" if row.selected else " "))
    return "\n".join(lines)


def render_graph_text(model: GraphModel) -> str:
    """Render edges as ``source --[label]--> target`` lines.

    Nodes without any edge are listed after the edges.
    """
    lines = [f"{e.source} --[{e.label}]--> {e.target}" for e in model.edges]
    linked = {e.source for e in model.edges} | {e.target for e in model.edges}
    for node in model.nodes:
        if node.id not in linked:
            lines.append(f"{node.id} <{node.type_tag}>")
    return "\n".join(lines)


__all__ = [
    "tree_to_dict",
    "table_to_dict",
    "graph_to_dict",
    "table_to_csv",
    "render_tree_text",
    "render_table_text",
    "render_graph_text",
]
