"""Graph projection - nodes and directed edges for the link view.

One node per element. Edges come from two sources:
- A usage's ``definitionRef`` yields ``definition -> usage`` (USAGE_OF).
- A relationship element yields ``sourceRef -> targetRef`` with the
  relationship's kind.

An edge whose endpoint is not resident is never emitted; it is recorded
in ``broken_references`` instead. The tree projection keeps such
elements visible as orphans, but a graph cannot draw to a missing node.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from sysview.model.ElementRecord import ElementKind, ElementRecord
from sysview.model.mutations import BrokenReference
from sysview.model.relations import EdgeKind, edge_kind_for

USAGE_EDGE_PREFIX = "usage-"


@dataclass
class GraphNode:
    """A drawable node."""

    id: str
    label: str
    type_tag: str
    kind: str
    selected: bool = False


@dataclass
class GraphEdge:
    """A directed edge between two resident elements.

    Attributes:
        id: Relationship element id, or ``usage-<usage id>`` for usage links.
        source: Source element id.
        target: Target element id.
        kind: The type of link.
    """

    id: str
    source: str
    target: str
    kind: EdgeKind

    @property
    def label(self) -> str:
        if self.kind == EdgeKind.USAGE_OF:
            return "usage of"
        return self.kind.value


@dataclass
class GraphModel:
    """Nodes, edges, and what could not be drawn."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    selected_ids: list[str] = field(default_factory=list)
    broken_references: list[BrokenReference] = field(default_factory=list)

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def edges_from(self, element_id: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.source == element_id]

    def edges_to(self, element_id: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.target == element_id]


def build_graph_model(
    elements: Mapping[str, ElementRecord],
    selection: Iterable[str] = (),
) -> GraphModel:
    """Derive the graph model.

    Args:
        elements: The store's element map, in insertion order.
        selection: Selected ids; ids that are not resident are dropped.

    Returns:
        A freshly built GraphModel. Every edge endpoint is a node id.
    """
    selected = frozenset(selection)
    model = GraphModel()

    for element_id, record in elements.items():
        model.nodes.append(
            GraphNode(
                id=element_id,
                label=record.label,
                type_tag=record.type_tag,
                kind=record.kind.value,
                selected=element_id in selected,
            )
        )

        kind = record.kind
        if kind == ElementKind.USAGE and record.definition_ref is not None:
            _add_edge(
                model,
                elements,
                edge_id=f"{USAGE_EDGE_PREFIX}{element_id}",
                owner=element_id,
                source=record.definition_ref,
                target=element_id,
                edge_kind=EdgeKind.USAGE_OF,
            )
        elif kind == ElementKind.RELATIONSHIP:
            source, target = record.source_ref, record.target_ref
            if source is None or target is None:
                continue
            _add_edge(
                model,
                elements,
                edge_id=element_id,
                owner=element_id,
                source=source,
                target=target,
                edge_kind=edge_kind_for(record.type_tag) or EdgeKind.TRACE,
            )

    model.selected_ids = sorted(i for i in selected if i in elements)
    return model


def _add_edge(
    model: GraphModel,
    elements: Mapping[str, ElementRecord],
    edge_id: str,
    owner: str,
    source: str,
    target: str,
    edge_kind: EdgeKind,
) -> None:
    missing = [ref for ref in (source, target) if ref not in elements]
    if missing:
        for ref in missing:
            model.broken_references.append(BrokenReference(owner, ref, edge_kind.value))
        return
    model.edges.append(GraphEdge(id=edge_id, source=source, target=target, kind=edge_kind))


__all__ = ["USAGE_EDGE_PREFIX", "GraphNode", "GraphEdge", "GraphModel", "build_graph_model"]
