"""
Immutable snapshot of a project's tabular data.

A GridState is never mutated after construction. Changes derive new states
through the with_* helpers, which share every Row they do not touch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal, Sequence

from ..errors import PreconditionError

Judgment = Literal["matched", "new", "none"]

JUDGMENTS = frozenset({"matched", "new", "none"})


@dataclass(frozen=True)
class Column:
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Column:
        return cls(name=str(data["name"]))


@dataclass(frozen=True)
class Recon:
    """Reconciliation result attached to a single cell."""

    judgment: Judgment
    match_id: str | None = None
    match_name: str | None = None
    score: float | None = None

    def __post_init__(self) -> None:
        if self.judgment not in JUDGMENTS:
            raise ValueError(f"Invalid recon judgment: {self.judgment}")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"judgment": self.judgment}
        if self.match_id is not None:
            result["match_id"] = self.match_id
        if self.match_name is not None:
            result["match_name"] = self.match_name
        if self.score is not None:
            result["score"] = self.score
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recon:
        return cls(
            judgment=data["judgment"],
            match_id=data.get("match_id"),
            match_name=data.get("match_name"),
            score=data.get("score"),
        )


@dataclass(frozen=True)
class Cell:
    value: Any
    recon: Recon | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"value": self.value}
        if self.recon is not None:
            result["recon"] = self.recon.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cell:
        recon = data.get("recon")
        return cls(
            value=data.get("value"),
            recon=Recon.from_dict(recon) if recon is not None else None,
        )


def is_blank(cell: Cell | None) -> bool:
    """True for a missing cell or one holding None / an empty string."""
    return cell is None or cell.value is None or cell.value == ""


@dataclass(frozen=True)
class Row:
    """One row; cells are positionally aligned with the column schema."""

    cells: tuple[Cell | None, ...] = ()
    starred: bool = False
    flagged: bool = False

    def cell(self, index: int) -> Cell | None:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return None

    def with_cell(self, index: int, cell: Cell | None) -> Row:
        cells = list(self.cells)
        cells[index] = cell
        return replace(self, cells=tuple(cells))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "cells": [c.to_dict() if c is not None else None for c in self.cells],
        }
        if self.starred:
            result["starred"] = True
        if self.flagged:
            result["flagged"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Row:
        return cls(
            cells=tuple(Cell.from_dict(c) if c is not None else None for c in data.get("cells", [])),
            starred=bool(data.get("starred", False)),
            flagged=bool(data.get("flagged", False)),
        )


@dataclass(frozen=True)
class GridState:
    """
    Immutable snapshot of tabular project data.

    Equality is structural: two states are equal when their columns, rows
    and metadata are equal. Accessors raise PreconditionError naming the
    missing column or row so that Change.apply can rely on them directly.
    """

    columns: tuple[Column, ...] = ()
    rows: tuple[Row, ...] = ()
    metadata: tuple[tuple[str, Any], ...] = field(default=())

    def __post_init__(self) -> None:
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names: {names}")
        width = len(self.columns)
        for i, row in enumerate(self.rows):
            if len(row.cells) != width:
                raise ValueError(f"Row {i} has {len(row.cells)} cells, expected {width}")

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def has_column(self, name: str) -> bool:
        return any(c.name == name for c in self.columns)

    def column_index(self, name: str) -> int:
        for i, column in enumerate(self.columns):
            if column.name == name:
                return i
        raise PreconditionError(f"column {name!r}", f"columns are {self.column_names}")

    def row(self, index: int) -> Row:
        if not 0 <= index < len(self.rows):
            raise PreconditionError(f"row {index}", f"grid has {len(self.rows)} rows")
        return self.rows[index]

    def cell(self, row: int, column: str) -> Cell | None:
        return self.row(row).cell(self.column_index(column))

    def meta(self, key: str, default: Any = None) -> Any:
        for k, v in self.metadata:
            if k == key:
                return v
        return default

    # -------------------------------------------------------------------------
    # Derivation (always returns a new state)
    # -------------------------------------------------------------------------

    def with_columns(self, columns: Sequence[Column], rows: Sequence[Row]) -> GridState:
        return replace(self, columns=tuple(columns), rows=tuple(rows))

    def with_rows(self, rows: Sequence[Row]) -> GridState:
        return replace(self, rows=tuple(rows))

    def with_metadata(self, key: str, value: Any) -> GridState:
        pairs = [(k, v) for k, v in self.metadata if k != key]
        pairs.append((key, value))
        return replace(self, metadata=tuple(sorted(pairs, key=lambda kv: kv[0])))

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "columns": [c.to_dict() for c in self.columns],
            "rows": [r.to_dict() for r in self.rows],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GridState:
        """Reconstruct from JSON dict."""
        metadata = data.get("metadata") or {}
        return cls(
            columns=tuple(Column.from_dict(c) for c in data.get("columns", [])),
            rows=tuple(Row.from_dict(r) for r in data.get("rows", [])),
            metadata=tuple(sorted(metadata.items(), key=lambda kv: kv[0])),
        )

    @classmethod
    def from_records(cls, columns: Iterable[str], records: Iterable[Sequence[Any]]) -> GridState:
        """Build a state from column names and rows of plain values."""
        cols = tuple(Column(name) for name in columns)
        rows = []
        for record in records:
            cells = [Cell(v) if v is not None else None for v in record]
            # Short records are padded with empty cells
            cells.extend([None] * (len(cols) - len(cells)))
            rows.append(Row(cells=tuple(cells[: len(cols)])))
        return cls(columns=cols, rows=tuple(rows))

    def to_records(self) -> list[list[Any]]:
        return [[c.value if c is not None else None for c in row.cells] for row in self.rows]
