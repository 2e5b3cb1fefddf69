"""CSV import/export for grid states."""

from __future__ import annotations

import csv
from pathlib import Path

from .state import GridState


def read_csv(path: Path, *, encoding: str = "utf-8") -> GridState:
    """
    Read a CSV file into a GridState.

    The first row is the header. Empty fields become empty cells.
    """
    with path.open("r", encoding=encoding, newline="") as f:
        reader = csv.reader(f)
        try:
            header = next(reader)
        except StopIteration:
            raise ValueError(f"CSV file is empty: {path}") from None
        records = [[value if value != "" else None for value in record] for record in reader]
    return GridState.from_records(header, records)


def write_csv(state: GridState, path: Path, *, encoding: str = "utf-8") -> int:
    """Write a GridState to CSV. Returns the number of data rows written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding=encoding, newline="") as f:
        writer = csv.writer(f)
        writer.writerow(state.column_names)
        for record in state.to_records():
            writer.writerow(["" if v is None else v for v in record])
    return state.row_count
