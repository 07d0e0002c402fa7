"""Tree projection - definitions with their usages as children.

Pure function of ``(elements, selection)``; recomputed from scratch on
every call.

Placement rules:
- Definitions are roots.
- A usage whose ``definitionRef`` names a resident definition is that
  definition's child.
- A usage whose reference is missing or dangling is a root-level orphan,
  so dangling references stay visible.
- Relationship elements are links, not tree nodes.
- Any other element kind is a root.

Siblings keep the store's insertion order. Sorting is applied
downstream with ``sort_tree``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Iterator, Mapping

from sysview.model.ElementRecord import ElementKind, ElementRecord
from sysview.model.mutations import BrokenReference
from sysview.model.relations import EdgeKind


@dataclass
class TreeNode:
    """One node of the tree model.

    Attributes:
        id: Element id.
        label: Display label.
        type_tag: Element type tag.
        kind: "definition", "usage" or "other".
        selected: True if the element is selected.
        orphan: True for a usage without a resident parent definition.
        children: Child nodes in insertion order.
    """

    id: str
    label: str
    type_tag: str
    kind: str
    selected: bool = False
    orphan: bool = False
    children: list[TreeNode] = field(default_factory=list)

    def walk(self) -> Iterator[TreeNode]:
        """Pre-order traversal (parent before children)."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class TreeModel:
    """Roots of the tree plus the references that could not be resolved."""

    roots: list[TreeNode] = field(default_factory=list)
    broken_references: list[BrokenReference] = field(default_factory=list)

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Iterate every node, pre-order."""
        for root in self.roots:
            yield from root.walk()

    def find(self, element_id: str) -> TreeNode | None:
        for node in self.iter_nodes():
            if node.id == element_id:
                return node
        return None

    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    def orphan_ids(self) -> list[str]:
        return [root.id for root in self.roots if root.orphan]


def _make_node(record: ElementRecord, selected: frozenset[str], orphan: bool = False) -> TreeNode:
    return TreeNode(
        id=record.id,
        label=record.label,
        type_tag=record.type_tag,
        kind=record.kind.value,
        selected=record.id in selected,
        orphan=orphan,
    )


def build_tree_model(
    elements: Mapping[str, ElementRecord],
    selection: Iterable[str] = (),
) -> TreeModel:
    """Derive the tree model.

    Args:
        elements: The store's element map, in insertion order.
        selection: Selected ids; ids that are not resident are ignored.

    Returns:
        A freshly built TreeModel.
    """
    selected = frozenset(selection)

    # Definition nodes first, so a usage inserted before its definition
    # still finds its parent.
    definition_nodes: dict[str, TreeNode] = {
        element_id: _make_node(record, selected)
        for element_id, record in elements.items()
        if record.kind == ElementKind.DEFINITION
    }

    model = TreeModel()
    for element_id, record in elements.items():
        kind = record.kind
        if kind == ElementKind.RELATIONSHIP:
            continue
        if kind == ElementKind.DEFINITION:
            model.roots.append(definition_nodes[element_id])
        elif kind == ElementKind.USAGE:
            ref = record.definition_ref
            parent = definition_nodes.get(ref) if ref is not None else None
            if parent is not None:
                parent.children.append(_make_node(record, selected))
            else:
                model.roots.append(_make_node(record, selected, orphan=True))
                if ref is not None:
                    model.broken_references.append(
                        BrokenReference(element_id, ref, EdgeKind.USAGE_OF.value)
                    )
        else:
            model.roots.append(_make_node(record, selected))

    return model


def sort_tree(model: TreeModel, key: Callable[[TreeNode], Any]) -> TreeModel:
    """Return a copy of ``model`` with every sibling list sorted by ``key``.

    The input model is left untouched.
    """

    def _sorted(nodes: list[TreeNode]) -> list[TreeNode]:
        return [replace(n, children=_sorted(n.children)) for n in sorted(nodes, key=key)]

    return TreeModel(roots=_sorted(model.roots), broken_references=list(model.broken_references))


__all__ = ["TreeNode", "TreeModel", "build_tree_model", "sort_tree"]
