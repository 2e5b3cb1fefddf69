"""Column schema changes: add, remove, rename, move."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from ..errors import PreconditionError
from ..grid.state import Cell, Column, GridState, Row
from ..history.change import Change
from ._fields import optional_int, require_int, require_str


def _insert_cell(row: Row, index: int, cell: Cell | None) -> Row:
    cells = list(row.cells)
    cells.insert(index, cell)
    return Row(cells=tuple(cells), starred=row.starred, flagged=row.flagged)


def _drop_cell(row: Row, index: int) -> Row:
    cells = row.cells[:index] + row.cells[index + 1:]
    return Row(cells=cells, starred=row.starred, flagged=row.flagged)


@dataclass(frozen=True)
class AddColumn(Change):
    """
    Add a column, optionally filled with a default value.

    Fields:
        name: New column name (must not exist)
        default: Value for every existing row (omitted = empty cells)
        index: Position of the new column (omitted = last)
    """

    TYPE_TAG: ClassVar[str] = "column-addition"

    name: str
    default: Any = None
    index: int | None = None

    def apply(self, state: GridState) -> GridState:
        if state.has_column(self.name):
            raise PreconditionError(f"free column name {self.name!r}", "column already exists")
        index = len(state.columns) if self.index is None else self.index
        if not 0 <= index <= len(state.columns):
            raise PreconditionError(f"column position {index}", f"grid has {len(state.columns)} columns")

        cell = Cell(self.default) if self.default is not None else None
        columns = list(state.columns)
        columns.insert(index, Column(self.name))
        rows = [_insert_cell(row, index, cell) for row in state.rows]
        return state.with_columns(columns, rows)

    def to_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {"name": self.name}
        if self.default is not None:
            fields["default"] = self.default
        if self.index is not None:
            fields["index"] = self.index
        return fields

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> AddColumn:
        return cls(
            name=require_str(fields, "name"),
            default=fields.get("default"),
            index=optional_int(fields, "index"),
        )

    def describe(self) -> str:
        return f"Add column {self.name}"


@dataclass(frozen=True)
class RemoveColumn(Change):
    """Remove a column and its cells."""

    TYPE_TAG: ClassVar[str] = "column-removal"

    name: str

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.name)
        columns = state.columns[:index] + state.columns[index + 1:]
        rows = [_drop_cell(row, index) for row in state.rows]
        return state.with_columns(columns, rows)

    def to_fields(self) -> dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> RemoveColumn:
        return cls(name=require_str(fields, "name"))

    def describe(self) -> str:
        return f"Remove column {self.name}"


@dataclass(frozen=True)
class RenameColumn(Change):
    """Rename a column. Rows are shared unchanged."""

    TYPE_TAG: ClassVar[str] = "column-rename"

    old_name: str
    new_name: str

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.old_name)
        if self.new_name != self.old_name and state.has_column(self.new_name):
            raise PreconditionError(f"free column name {self.new_name!r}", "column already exists")
        columns = list(state.columns)
        columns[index] = Column(self.new_name)
        return state.with_columns(columns, state.rows)

    def to_fields(self) -> dict[str, Any]:
        return {"old_name": self.old_name, "new_name": self.new_name}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> RenameColumn:
        return cls(
            old_name=require_str(fields, "old_name"),
            new_name=require_str(fields, "new_name"),
        )

    def describe(self) -> str:
        return f"Rename column {self.old_name} to {self.new_name}"


@dataclass(frozen=True)
class MoveColumn(Change):
    """Move a column to a new position."""

    TYPE_TAG: ClassVar[str] = "column-move"

    name: str
    index: int

    def apply(self, state: GridState) -> GridState:
        source = state.column_index(self.name)
        if not 0 <= self.index < len(state.columns):
            raise PreconditionError(f"column position {self.index}", f"grid has {len(state.columns)} columns")
        if source == self.index:
            return state

        order = list(range(len(state.columns)))
        order.insert(self.index, order.pop(source))
        columns = [state.columns[i] for i in order]
        rows = [
            Row(cells=tuple(row.cells[i] for i in order), starred=row.starred, flagged=row.flagged)
            for row in state.rows
        ]
        return state.with_columns(columns, rows)

    def to_fields(self) -> dict[str, Any]:
        return {"name": self.name, "index": self.index}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> MoveColumn:
        return cls(name=require_str(fields, "name"), index=require_int(fields, "index"))

    def describe(self) -> str:
        return f"Move column {self.name} to position {self.index}"
