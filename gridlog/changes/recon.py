"""
Reconciliation changes.

Lookups against a reconciliation service happen before the change is built;
the change only carries the judgments, keyed by cell value, so applying it
needs no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from ..grid.state import Cell, GridState, Recon, is_blank
from ..history.change import Change
from ._fields import require_str, scalar


@dataclass(frozen=True)
class ReconcileColumn(Change):
    """
    Attach reconciliation results to the cells of a column.

    Fields:
        column: Column being reconciled
        judgments: List of {"value", "judgment", "match_id"?, "match_name"?, "score"?}.
            Every non-blank cell whose value equals "value" gets that recon;
            other cells keep whatever recon they had.
    """

    TYPE_TAG: ClassVar[str] = "reconciliation-result"

    column: str
    judgments: tuple[tuple[Any, Recon], ...] = ()

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        mapping: dict[Any, Recon] = {}
        for value, recon in self.judgments:
            mapping.setdefault(value, recon)

        rows = list(state.rows)
        for i, row in enumerate(rows):
            cell = row.cell(index)
            if is_blank(cell) or cell.value not in mapping:
                continue
            recon = mapping[cell.value]
            if cell.recon != recon:
                rows[i] = row.with_cell(index, Cell(cell.value, recon))
        return state.with_rows(rows)

    def to_fields(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "judgments": [{"value": value, **recon.to_dict()} for value, recon in self.judgments],
        }

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> ReconcileColumn:
        raw = fields.get("judgments", [])
        if not isinstance(raw, list):
            raise TypeError("'judgments' must be a list")
        return cls(
            column=require_str(fields, "column"),
            judgments=tuple((scalar(item["value"], "value"), Recon.from_dict(item)) for item in raw),
        )

    def describe(self) -> str:
        matched = sum(1 for _, recon in self.judgments if recon.judgment == "matched")
        return f"Reconcile column {self.column} ({matched} of {len(self.judgments)} values matched)"


@dataclass(frozen=True)
class ClearRecon(Change):
    """Remove reconciliation data from every cell of a column."""

    TYPE_TAG: ClassVar[str] = "reconciliation-clear"

    column: str

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        rows = list(state.rows)
        for i, row in enumerate(rows):
            cell = row.cell(index)
            if cell is not None and cell.recon is not None:
                rows[i] = row.with_cell(index, Cell(cell.value))
        return state.with_rows(rows)

    def to_fields(self) -> dict[str, Any]:
        return {"column": self.column}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> ClearRecon:
        return cls(column=require_str(fields, "column"))

    def describe(self) -> str:
        return f"Clear reconciliation in column {self.column}"
