"""Table projection - one flat row per element.

A straight enumeration of the store: no filtering, sorting or searching.
Those are the caller's (or backend's) business.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from sysview.model.ElementRecord import ElementRecord

_FIXED_COLUMNS = ("id", "typeTag")


@dataclass
class TableRow:
    """One row of the table model."""

    id: str
    type_tag: str
    attributes: dict[str, Any] = field(default_factory=dict)
    selected: bool = False

    def as_dict(self) -> dict[str, Any]:
        """Flatten to ``{id, typeTag, attributes...}``.

        ``id`` and ``typeTag`` always come from the record, never from an
        attribute of the same name.
        """
        row: dict[str, Any] = {"id": self.id, "typeTag": self.type_tag}
        for key, value in self.attributes.items():
            if key not in row:
                row[key] = value
        return row


@dataclass
class TableModel:
    """Rows in store order plus the column set they span."""

    rows: list[TableRow] = field(default_factory=list)
    columns: list[str] = field(default_factory=lambda: list(_FIXED_COLUMNS))

    def row_count(self) -> int:
        return len(self.rows)

    def selected_rows(self) -> list[TableRow]:
        return [row for row in self.rows if row.selected]


def build_table_model(
    elements: Mapping[str, ElementRecord],
    selection: Iterable[str] = (),
) -> TableModel:
    """Derive the table model.

    Args:
        elements: The store's element map, in insertion order.
        selection: Selected ids; ids that are not resident are ignored.

    Returns:
        A freshly built TableModel.
    """
    selected = frozenset(selection)
    model = TableModel()
    seen = set(model.columns)

    for element_id, record in elements.items():
        model.rows.append(
            TableRow(
                id=element_id,
                type_tag=record.type_tag,
                attributes=copy.deepcopy(record.attributes),
                selected=element_id in selected,
            )
        )
        for key in record.attributes:
            if key not in seen:
                seen.add(key)
                model.columns.append(key)

    return model


__all__ = ["TableRow", "TableModel", "build_table_model"]
