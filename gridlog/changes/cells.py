"""Cell content changes: single edits, mass edits, fill down, blank down."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from ..grid.state import Cell, GridState, is_blank
from ..history.change import Change
from ._fields import require_int, require_str, scalar


def _cell_for(value: Any) -> Cell | None:
    return Cell(value) if value is not None else None


@dataclass(frozen=True)
class CellEdit(Change):
    """Set one cell's value (any reconciliation on it is dropped)."""

    TYPE_TAG: ClassVar[str] = "cell-edit"

    row: int
    column: str
    value: Any = None

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        target = state.row(self.row)
        rows = list(state.rows)
        rows[self.row] = target.with_cell(index, _cell_for(self.value))
        return state.with_rows(rows)

    def to_fields(self) -> dict[str, Any]:
        return {"row": self.row, "column": self.column, "value": self.value}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> CellEdit:
        return cls(
            row=require_int(fields, "row"),
            column=require_str(fields, "column"),
            value=fields.get("value"),
        )

    def describe(self) -> str:
        return f"Edit cell {self.row}, column {self.column}"


@dataclass(frozen=True)
class MassEdit(Change):
    """
    Replace every cell whose value matches an edit's "from" value.

    Fields:
        column: Column to edit
        edits: List of {"from": value, "to": value}; a null "from" matches
            blank cells. When two edits share a "from", the first wins.
    """

    TYPE_TAG: ClassVar[str] = "mass-edit"

    column: str
    edits: tuple[tuple[Any, Any], ...] = ()

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        mapping: dict[Any, Any] = {}
        for source, target in self.edits:
            mapping.setdefault(source, target)

        rows = list(state.rows)
        changed = False
        for i, row in enumerate(rows):
            cell = row.cell(index)
            key = None if is_blank(cell) else cell.value
            if key in mapping:
                rows[i] = row.with_cell(index, _cell_for(mapping[key]))
                changed = True
        return state.with_rows(rows) if changed else state

    def to_fields(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "edits": [{"from": source, "to": target} for source, target in self.edits],
        }

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> MassEdit:
        raw = fields.get("edits", [])
        if not isinstance(raw, list):
            raise TypeError("'edits' must be a list")
        return cls(
            column=require_str(fields, "column"),
            edits=tuple((scalar(e["from"], "from"), e["to"]) for e in raw),
        )

    def describe(self) -> str:
        return f"Mass edit {len(self.edits)} values in column {self.column}"


@dataclass(frozen=True)
class FillDown(Change):
    """Fill blank cells with the nearest non-blank cell above them."""

    TYPE_TAG: ClassVar[str] = "fill-down"

    column: str

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        rows = list(state.rows)
        previous: Cell | None = None
        changed = False
        for i, row in enumerate(rows):
            cell = row.cell(index)
            if is_blank(cell):
                if previous is not None:
                    rows[i] = row.with_cell(index, previous)
                    changed = True
            else:
                previous = cell
        return state.with_rows(rows) if changed else state

    def to_fields(self) -> dict[str, Any]:
        return {"column": self.column}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> FillDown:
        return cls(column=require_str(fields, "column"))

    def describe(self) -> str:
        return f"Fill down cells in column {self.column}"


@dataclass(frozen=True)
class BlankDown(Change):
    """Blank out cells that repeat the value of the cell directly above."""

    TYPE_TAG: ClassVar[str] = "blank-down"

    column: str

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        rows = list(state.rows)
        previous: Any = None
        changed = False
        for i, row in enumerate(rows):
            cell = row.cell(index)
            value = None if is_blank(cell) else cell.value
            if value is not None and value == previous:
                rows[i] = row.with_cell(index, None)
                changed = True
            previous = value
        return state.with_rows(rows) if changed else state

    def to_fields(self) -> dict[str, Any]:
        return {"column": self.column}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> BlankDown:
        return cls(column=require_str(fields, "column"))

    def describe(self) -> str:
        return f"Blank down cells in column {self.column}"
