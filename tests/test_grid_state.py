from __future__ import annotations

from pathlib import Path

import pytest

from gridlog.errors import PreconditionError
from gridlog.grid.csvio import read_csv, write_csv
from gridlog.grid.state import Cell, Column, GridState, Recon, Row


def test_from_records_pads_short_rows() -> None:
    state = GridState.from_records(["a", "b", "c"], [["1"], ["1", "2", "3"]])

    assert state.column_names == ["a", "b", "c"]
    assert state.rows[0].cells == (Cell("1"), None, None)
    assert state.to_records() == [["1", None, None], ["1", "2", "3"]]


def test_structural_equality() -> None:
    one = GridState.from_records(["a"], [["x"], ["y"]])
    two = GridState.from_records(["a"], [["x"], ["y"]])

    assert one == two
    assert one is not two
    assert one != GridState.from_records(["a"], [["x"]])


def test_rejects_duplicate_columns_and_ragged_rows() -> None:
    with pytest.raises(ValueError, match="Duplicate column"):
        GridState(columns=(Column("a"), Column("a")))

    with pytest.raises(ValueError, match="Row 0"):
        GridState(columns=(Column("a"),), rows=(Row(cells=(None, None)),))


def test_accessors_name_missing_resources(people_grid: GridState) -> None:
    assert people_grid.column_index("city") == 1
    assert people_grid.cell(1, "city") == Cell("New York")
    assert people_grid.cell(3, "city") is None

    with pytest.raises(PreconditionError, match="column 'zip'") as exc:
        people_grid.column_index("zip")
    assert exc.value.resource == "column 'zip'"

    with pytest.raises(PreconditionError, match="row 10"):
        people_grid.row(10)
    with pytest.raises(PreconditionError, match="row -1"):
        people_grid.row(-1)


def test_with_metadata_returns_new_state(empty_grid: GridState) -> None:
    tagged = empty_grid.with_metadata("source", "survey.csv")

    assert tagged.meta("source") == "survey.csv"
    assert empty_grid.meta("source") is None
    assert tagged.with_metadata("source", "other.csv").meta("source") == "other.csv"


def test_with_rows_shares_untouched_rows(people_grid: GridState) -> None:
    rows = list(people_grid.rows)
    rows[0] = rows[0].with_cell(0, Cell("Ada L."))
    derived = people_grid.with_rows(rows)

    assert derived.rows[1] is people_grid.rows[1]
    assert people_grid.cell(0, "name") == Cell("Ada")


def test_dict_roundtrip_keeps_recon_and_flags() -> None:
    recon = Recon("matched", match_id="Q7259", match_name="Ada Lovelace", score=0.98)
    state = GridState(
        columns=(Column("name"),),
        rows=(Row(cells=(Cell("Ada", recon),), starred=True), Row(cells=(None,), flagged=True)),
    ).with_metadata("source", "test")

    assert GridState.from_dict(state.to_dict()) == state


def test_recon_rejects_unknown_judgment() -> None:
    with pytest.raises(ValueError, match="judgment"):
        Recon("maybe")


def test_csv_roundtrip(tmp_path: Path, people_grid: GridState) -> None:
    path = tmp_path / "out" / "people.csv"

    assert write_csv(people_grid, path) == 4
    assert read_csv(path) == people_grid


def test_read_csv_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ValueError, match="empty"):
        read_csv(path)
