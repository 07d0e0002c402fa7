"""Views module - Read-only projections of the element store.

Each projection is a pure function of ``(elements, selection)`` and keeps
no state between calls.

Exports:
- build_tree_model / TreeModel / TreeNode / sort_tree
- build_table_model / TableModel / TableRow
- build_graph_model / GraphModel / GraphNode / GraphEdge
- Serialization helpers for each model
"""

from sysview.views.graph import GraphEdge, GraphModel, GraphNode, build_graph_model
from sysview.views.serialize import (
    graph_to_dict,
    render_graph_text,
    render_table_text,
    render_tree_text,
    table_to_csv,
    table_to_dict,
    tree_to_dict,
)
from sysview.views.table import TableModel, TableRow, build_table_model
from sysview.views.tree import TreeModel, TreeNode, build_tree_model, sort_tree

__all__ = [
    "TreeNode",
    "TreeModel",
    "build_tree_model",
    "sort_tree",
    "TableRow",
    "TableModel",
    "build_table_model",
    "GraphNode",
    "GraphEdge",
    "GraphModel",
    "build_graph_model",
    "tree_to_dict",
    "table_to_dict",
    "table_to_csv",
    "graph_to_dict",
    "render_tree_text",
    "render_table_text",
    "render_graph_text",
]
