"""Row changes: removal, value filters, stars."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, ClassVar

from ..grid.state import GridState, is_blank
from ..history.change import Change
from ._fields import int_tuple, require_str, scalar


def _check_rows(state: GridState, indices: tuple[int, ...]) -> None:
    for index in indices:
        state.row(index)


@dataclass(frozen=True)
class RemoveRows(Change):
    """Remove rows by index (indices refer to the state the change applies to)."""

    TYPE_TAG: ClassVar[str] = "row-removal"

    rows: tuple[int, ...] = ()

    def apply(self, state: GridState) -> GridState:
        _check_rows(state, self.rows)
        drop = set(self.rows)
        return state.with_rows([row for i, row in enumerate(state.rows) if i not in drop])

    def to_fields(self) -> dict[str, Any]:
        return {"rows": list(self.rows)}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> RemoveRows:
        return cls(rows=int_tuple(fields, "rows"))

    def describe(self) -> str:
        return f"Remove {len(self.rows)} rows"


@dataclass(frozen=True)
class FilterRows(Change):
    """
    Keep (or drop) the rows whose cell in `column` has one of `values`.

    Fields:
        column: Column to test
        values: Values to match; null matches blank cells
        keep: true keeps matching rows, false removes them
    """

    TYPE_TAG: ClassVar[str] = "row-filter"

    column: str
    values: tuple[Any, ...] = ()
    keep: bool = True

    def apply(self, state: GridState) -> GridState:
        index = state.column_index(self.column)
        wanted = set(self.values)
        kept = []
        for row in state.rows:
            cell = row.cell(index)
            value = None if is_blank(cell) else cell.value
            if (value in wanted) == self.keep:
                kept.append(row)
        return state.with_rows(kept)

    def to_fields(self) -> dict[str, Any]:
        return {"column": self.column, "values": list(self.values), "keep": self.keep}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> FilterRows:
        values = fields.get("values", [])
        if not isinstance(values, (list, tuple)):
            raise TypeError("'values' must be a list")
        keep = fields.get("keep", True)
        if not isinstance(keep, bool):
            raise TypeError(f"'keep' must be a boolean, got {keep!r}")
        return cls(
            column=require_str(fields, "column"),
            values=tuple(scalar(v, "values") for v in values),
            keep=keep,
        )

    def describe(self) -> str:
        verb = "Keep" if self.keep else "Remove"
        return f"{verb} rows matching {len(self.values)} values in column {self.column}"


@dataclass(frozen=True)
class StarRows(Change):
    """Star or unstar rows by index."""

    TYPE_TAG: ClassVar[str] = "row-star"

    rows: tuple[int, ...] = ()
    starred: bool = True

    def apply(self, state: GridState) -> GridState:
        _check_rows(state, self.rows)
        rows = list(state.rows)
        for index in set(self.rows):
            if rows[index].starred != self.starred:
                rows[index] = replace(rows[index], starred=self.starred)
        return state.with_rows(rows)

    def to_fields(self) -> dict[str, Any]:
        return {"rows": list(self.rows), "starred": self.starred}

    @classmethod
    def from_fields(cls, fields: dict[str, Any]) -> StarRows:
        starred = fields.get("starred", True)
        if not isinstance(starred, bool):
            raise TypeError(f"'starred' must be a boolean, got {starred!r}")
        return cls(rows=int_tuple(fields, "rows"), starred=starred)

    def describe(self) -> str:
        verb = "Star" if self.starred else "Unstar"
        return f"{verb} {len(self.rows)} rows"
