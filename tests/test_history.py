"""
Tests for History: cursor navigation, atomicity, replay equivalence,
checkpointing and retention.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from gridlog.changes import (
    AddColumn,
    CellEdit,
    FillDown,
    MassEdit,
    RemoveColumn,
    RenameColumn,
    StarRows,
)
from gridlog.errors import HistoryIntegrityError, NoOpError, PreconditionError, UnknownTypeError
from gridlog.grid.state import Cell, GridState
from gridlog.history.change import encode_change
from gridlog.history.entry import create_entry
from gridlog.history.history import History
from gridlog.history.registry import ChangeTypeRegistry

EDITS = [
    AddColumn("score", default=0),
    RenameColumn("city", "town"),
    CellEdit(3, "town", "Amsterdam"),
    MassEdit("country", (("UK", "United Kingdom"),)),
    StarRows((0,)),
    FillDown("country"),
    RemoveColumn("score"),
]


def _apply_all(history: History) -> None:
    for change in EDITS:
        history.apply_change(change)


def test_initial_history(history: History, people_grid: GridState) -> None:
    assert history.cursor == 0
    assert len(history) == 0
    assert history.current_state() == people_grid
    assert not history.can_undo()
    assert not history.can_redo()


def test_add_column_scenario(empty_grid: GridState, registry: ChangeTypeRegistry) -> None:
    history = History(empty_grid, registry=registry)

    history.apply_change(AddColumn("C", default=0))
    assert history.cursor == 1
    assert history.current_state() == GridState.from_records(["A", "B", "C"], [])

    history.undo()
    assert history.cursor == 0
    assert history.current_state() == empty_grid

    history.apply_change(AddColumn("D"))
    assert history.cursor == 1
    assert len(history) == 1
    assert history.current_state().column_names == ["A", "B", "D"]

    with pytest.raises(NoOpError, match="redo"):
        history.redo()


def test_entry_provenance(history: History) -> None:
    entry = history.apply_change(AddColumn("zip"))
    described = history.apply_change(CellEdit(0, "zip", "N1"), description="Set Ada's zip")

    assert entry.description == "Add column zip"
    assert described.description == "Set Ada's zip"
    assert entry.timestamp.tzinfo == timezone.utc
    assert entry.entry_id != described.entry_id
    assert entry.type_tag == "column-addition"


def test_undo_redo_navigation(history: History, people_grid: GridState) -> None:
    first = history.apply_change(AddColumn("zip"))
    second = history.apply_change(CellEdit(0, "zip", "N1"))
    after_second = history.current_state()

    assert history.undo_description() == second.description
    assert history.undo() == second
    assert history.undo() == first
    assert history.current_state() == people_grid
    assert history.redo_description() == first.description

    with pytest.raises(NoOpError, match="undo"):
        history.undo()

    assert history.redo() == first
    assert history.redo() == second
    assert history.current_state() == after_second
    assert history.redo_description() is None

    with pytest.raises(NoOpError, match="redo"):
        history.redo()


def test_undo_does_not_touch_entries(history: History) -> None:
    _apply_all(history)
    entries = history.entries

    history.undo()
    history.undo()

    assert history.entries == entries
    assert history.cursor == len(EDITS) - 2


def test_new_change_discards_redo_tail(history: History) -> None:
    _apply_all(history)
    for _ in range(3):
        history.undo()

    history.apply_change(StarRows((2,)))

    assert len(history) == len(EDITS) - 2
    assert history.cursor == len(history)
    assert not history.can_redo()
    with pytest.raises(NoOpError):
        history.redo()


def test_failed_apply_is_atomic(history: History) -> None:
    history.apply_change(AddColumn("zip"))
    history.apply_change(CellEdit(0, "zip", "N1"))
    history.undo()
    before_entries = history.entries
    before_state = history.current_state()

    with pytest.raises(PreconditionError, match="column 'missing'"):
        history.apply_change(RemoveColumn("missing"))

    assert history.entries == before_entries
    assert history.cursor == 1
    assert history.can_redo()
    assert history.current_state() == before_state


@pytest.mark.parametrize("interval", [0, 1, 2, 3])
def test_cached_state_equals_replay(people_grid: GridState, registry: ChangeTypeRegistry, interval: int) -> None:
    history = History(people_grid, registry=registry, checkpoint_interval=interval)
    _apply_all(history)

    for _ in range(len(EDITS) + 1):
        assert history.current_state() == history.replay_state()
        if history.can_undo():
            history.undo()

    for position in range(len(EDITS) + 1):
        assert history.state_at(position) == history.replay_state(position)


def test_checkpoint_interval_controls_cache(people_grid: GridState) -> None:
    every = History(people_grid, checkpoint_interval=1)
    sparse = History(people_grid, checkpoint_interval=3)
    none = History(people_grid, checkpoint_interval=0)
    for history in (every, sparse, none):
        _apply_all(history)

    assert all(e.state is not None for e in every.entries)
    assert [e.state is not None for e in sparse.entries] == [False, False, True, False, False, True, False]
    assert all(e.state is None for e in none.entries)
    assert every.current_state() == sparse.current_state() == none.current_state()


def test_verify_detects_corrupted_cache(history: History, people_grid: GridState) -> None:
    _apply_all(history)
    assert history.verify() == len(EDITS)

    entries = list(history.entries)
    entries[2] = entries[2].with_state(people_grid)
    corrupted = History(people_grid, entries=entries)

    with pytest.raises(HistoryIntegrityError) as exc:
        corrupted.verify()
    assert exc.value.position == 3


def test_retention_folds_oldest_entries(people_grid: GridState) -> None:
    bounded = History(people_grid, max_entries=3)
    unbounded = History(people_grid)
    _apply_all(bounded)
    _apply_all(unbounded)

    assert len(bounded) == 3
    assert bounded.cursor == 3
    assert bounded.initial_state == unbounded.state_at(len(EDITS) - 3)
    assert bounded.current_state() == unbounded.current_state()
    assert bounded.replay_state() == bounded.current_state()

    for _ in range(3):
        bounded.undo()
    with pytest.raises(NoOpError):
        bounded.undo()


def test_extend_applies_serialized_changes(history: History) -> None:
    records = [encode_change(AddColumn("zip")), {**encode_change(CellEdit(1, "zip", "10001")), "description": "NYC zip"}]

    entries = history.extend(records)

    assert [e.type_tag for e in entries] == ["column-addition", "cell-edit"]
    assert entries[1].description == "NYC zip"
    assert history.cursor == 2
    assert history.current_state().cell(1, "zip") == Cell("10001")


def test_extend_is_all_or_nothing(history: History) -> None:
    history.apply_change(AddColumn("zip"))

    bad_apply = [encode_change(CellEdit(0, "zip", "N1")), encode_change(RemoveColumn("missing"))]
    with pytest.raises(PreconditionError):
        history.extend(bad_apply)

    bad_tag = [encode_change(CellEdit(0, "zip", "N1")), {"type": "nonexistent-type"}]
    with pytest.raises(UnknownTypeError):
        history.extend(bad_tag)

    assert len(history) == 1
    assert history.cursor == 1
    assert history.current_state().cell(0, "zip") is None


def test_extend_accepts_change_objects_without_registry(people_grid: GridState) -> None:
    history = History(people_grid)
    history.extend([AddColumn("zip")])

    assert history.cursor == 1
    with pytest.raises(ValueError, match="no registry"):
        history.extend([encode_change(AddColumn("other"))])


def test_dict_roundtrip(history: History, registry: ChangeTypeRegistry) -> None:
    _apply_all(history)
    history.undo()

    restored = History.from_dict(history.to_dict(), registry)

    assert restored.cursor == history.cursor
    assert [e.change for e in restored.entries] == [e.change for e in history.entries]
    assert restored.entries == history.entries
    assert restored.current_state() == history.current_state()


def test_from_dict_rejects_unknown_tag(history: History, registry: ChangeTypeRegistry) -> None:
    _apply_all(history)
    data = history.to_dict()
    data["entries"][1]["type"] = "nonexistent-type"

    with pytest.raises(UnknownTypeError, match="nonexistent-type"):
        History.from_dict(data, registry)
    assert len(history) == len(EDITS)


def test_constructor_validates_arguments(people_grid: GridState) -> None:
    with pytest.raises(ValueError, match="cursor"):
        History(people_grid, cursor=1)
    with pytest.raises(ValueError, match="checkpoint_interval"):
        History(people_grid, checkpoint_interval=-1)
    with pytest.raises(ValueError, match="max_entries"):
        History(people_grid, max_entries=0)


def test_concurrent_writers_are_serialized(people_grid: GridState) -> None:
    history = History(people_grid)
    errors: list[Exception] = []

    def worker(n: int) -> None:
        try:
            for i in range(20):
                history.apply_change(CellEdit(0, "name", f"w{n}-{i}"))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(history) == 80
    assert history.cursor == 80
    assert history.current_state() == history.replay_state()


def test_retention_applies_to_loaded_history(people_grid: GridState) -> None:
    unbounded = History(people_grid)
    _apply_all(unbounded)

    bounded = History(people_grid, entries=unbounded.entries, max_entries=3)

    assert len(bounded) == 3
    assert bounded.cursor == 3
    assert bounded.initial_state == unbounded.state_at(len(EDITS) - 3)
    assert bounded.current_state() == unbounded.current_state()
    for _ in range(3):
        bounded.undo()
    assert not bounded.can_undo()


def test_retention_keeps_state_at_cursor(people_grid: GridState) -> None:
    unbounded = History(people_grid)
    _apply_all(unbounded)

    # Cursor at 2: only two entries can be folded, the redo tail stays
    bounded = History(people_grid, entries=unbounded.entries, cursor=2, max_entries=3)

    assert bounded.cursor == 0
    assert len(bounded) == len(EDITS) - 2
    assert bounded.current_state() == unbounded.state_at(2)
    assert bounded.replay_state(len(bounded)) == unbounded.state_at(len(EDITS))

    bounded.apply_change(StarRows((1,)))
    assert len(bounded) == 1


def test_entry_ids_sort_by_creation_time() -> None:
    early = create_entry(AddColumn("a"), timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))
    late = create_entry(AddColumn("a"), timestamp=datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc))

    assert len(early.entry_id) == 26
    assert set(early.entry_id) <= set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")
    assert early.entry_id < late.entry_id
    assert early.entry_id[:10] != late.entry_id[:10]


def test_create_entry_stores_description_as_text() -> None:
    assert create_entry(AddColumn("a"), description=5).description == "5"
    assert create_entry(AddColumn("a"), description="").description == "Add column a"
