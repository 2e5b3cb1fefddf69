"""Project history CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..changes import default_registry
from ..config import GridlogConfig, resolve_config
from ..errors import HistoryError
from ..grid.csvio import read_csv, write_csv
from ..history.history import History
from ..history.store import HistoryStore


def _store(project_dir: Path, config: GridlogConfig) -> HistoryStore:
    return HistoryStore(project_dir / config.data_dir)


def _load(project_dir: Path) -> tuple[HistoryStore, History]:
    config = resolve_config(project_dir)
    store = _store(project_dir, config)
    if not store.exists():
        raise FileNotFoundError(f"No history in {store.data_dir} (run 'gridlog init' first)")
    return store, store.load(default_registry(), **config.history_options())


def _parse_json_arg(value: str) -> Any:
    """Inline JSON, or @path to read JSON from a file."""
    if value.startswith("@"):
        value = Path(value[1:]).read_text(encoding="utf-8")
    return json.loads(value)


def _fail(err: Console, message: str) -> int:
    err.print(message, style="bold red", markup=False, soft_wrap=True)
    return 1


def run_init(project_dir: Path, csv_path: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    config = resolve_config(project_dir)
    store = _store(project_dir, config)
    try:
        state = read_csv(csv_path)
        store.init(state)
    except (OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Initialized {store.data_dir}", style="green")
    console.print(f"  {len(state.columns)} columns, {state.row_count} rows", style="dim")
    return 0


def run_show(project_dir: Path, *, output_json: bool = False, limit: int | None = None) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        _, history = _load(project_dir)
        state = history.current_state()
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    if output_json:
        print(json.dumps(state.to_dict(), indent=2, sort_keys=True))
        return 0

    table = Table(title=f"Grid at position {history.cursor}/{len(history)}")
    table.add_column("#", style="dim", justify="right")
    for name in state.column_names:
        table.add_column(name)

    rows = state.rows if limit is None else state.rows[:limit]
    for i, row in enumerate(rows):
        values = []
        for cell in row.cells:
            if cell is None:
                values.append("")
            elif cell.recon is not None and cell.recon.judgment == "matched":
                values.append(f"[cyan]{escape(str(cell.value))}[/]")
            else:
                values.append(escape(str(cell.value)))
        marker = f"{i}*" if row.starred else str(i)
        table.add_row(marker, *values)

    console.print(table)
    if limit is not None and state.row_count > limit:
        console.print(f"  ... {state.row_count - limit} more rows", style="dim")
    return 0


def run_log(project_dir: Path, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        _, history = _load(project_dir)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    if output_json:
        data = {
            "cursor": history.cursor,
            "entries": [e.to_dict() for e in history.entries],
        }
        print(json.dumps(data, indent=2, sort_keys=True))
        return 0

    table = Table(title="History")
    table.add_column("", no_wrap=True)
    table.add_column("#", justify="right")
    table.add_column("type", style="magenta")
    table.add_column("description")
    table.add_column("timestamp", style="dim")

    cursor = history.cursor
    for position, entry in enumerate(history.entries, start=1):
        active = position <= cursor
        table.add_row(
            "▶" if position == cursor else "",
            str(position),
            entry.type_tag,
            escape(entry.description) if active else f"[dim]{escape(entry.description)}[/]",
            entry.timestamp.isoformat(timespec="seconds"),
        )

    console.print(table)
    if cursor == 0:
        console.print("  at initial state", style="dim")
    return 0


def run_apply(project_dir: Path, change_json: str, *, description: str | None = None) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        store, history = _load(project_dir)
        record = _parse_json_arg(change_json)
        if not isinstance(record, dict):
            return _fail(err, "Change must be a JSON object with a 'type' field")
        change = default_registry().decode(record)
        entry = history.apply_change(change, description=description or record.get("description"))
        store.save(history)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Applied: {escape(entry.description)}", style="green")
    console.print(f"  position {history.cursor}/{len(history)}", style="dim")
    return 0


def run_replay(project_dir: Path, changes_file: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        store, history = _load(project_dir)
        records = json.loads(changes_file.read_text(encoding="utf-8"))
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            return _fail(err, "Replay file must contain a JSON list of change objects")
        applied = history.extend(records)
        store.save(history)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Applied {len(applied)} changes", style="green")
    console.print(f"  position {history.cursor}/{len(history)}", style="dim")
    return 0


def run_undo(project_dir: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        store, history = _load(project_dir)
        entry = history.undo()
        store.save(history)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Undid: {escape(entry.description)}", style="green")
    console.print(f"  position {history.cursor}/{len(history)}", style="dim")
    return 0


def run_redo(project_dir: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        store, history = _load(project_dir)
        entry = history.redo()
        store.save(history)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Redid: {escape(entry.description)}", style="green")
    console.print(f"  position {history.cursor}/{len(history)}", style="dim")
    return 0


def run_verify(project_dir: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        _, history = _load(project_dir)
        # Populate checkpoints along the whole log, then compare against replay
        history.state_at(len(history))
        checked = history.verify()
        cached = history.current_state()
        replayed = history.replay_state()
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    if cached != replayed:
        return _fail(err, "Current state does not match replay")
    console.print(f"OK: {len(history)} entries replay cleanly ({checked} checkpoints compared)", style="green")
    return 0


def run_export(project_dir: Path, csv_path: Path) -> int:
    err = Console(stderr=True)
    console = Console()
    try:
        _, history = _load(project_dir)
        count = write_csv(history.current_state(), csv_path)
    except (HistoryError, OSError, ValueError) as e:
        return _fail(err, str(e))

    console.print(f"Wrote {count} rows to {csv_path}", style="green")
    return 0


def run_types() -> int:
    console = Console()
    for tag in default_registry().tags():
        console.print(tag)
    return 0
