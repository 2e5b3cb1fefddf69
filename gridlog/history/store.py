"""
On-disk persistence for a project history.

Layout under the project data directory:

    initial.json     GridState the history starts from
    history.jsonl    one serialized HistoryEntry envelope per line, oldest first
    cursor.json      {"cursor": n}

Loading is read-only: a failure aborts the load and leaves every file as it
was. Saving writes each file to a temporary sibling and renames it into place.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

from ..errors import ChangeFormatError, HistoryLoadError, UnknownTypeError
from ..grid.state import GridState
from .entry import HistoryEntry
from .history import History
from .registry import ChangeTypeRegistry

logger = logging.getLogger(__name__)

INITIAL_FILE = "initial.json"
HISTORY_FILE = "history.jsonl"
CURSOR_FILE = "cursor.json"


def _write_atomic(path: Path, text: str) -> None:
    temp_path = path.with_suffix(path.suffix + ".tmp")
    temp_path.write_text(text, encoding="utf-8")
    temp_path.replace(path)


class HistoryStore:
    """File-backed storage for one project's history."""

    def __init__(self, data_dir: Path):
        """
        Initialize store.

        Args:
            data_dir: Directory holding the history files (e.g. project/.gridlog)
        """
        self.data_dir = data_dir
        self.initial_path = data_dir / INITIAL_FILE
        self.history_path = data_dir / HISTORY_FILE
        self.cursor_path = data_dir / CURSOR_FILE

    def _ensure_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.initial_path.exists()

    def init(self, initial_state: GridState) -> None:
        """
        Create an empty history for a new project.

        Raises:
            FileExistsError: If a history already exists here
        """
        if self.exists():
            raise FileExistsError(f"History already exists: {self.data_dir}")
        self.save(History(initial_state))
        logger.info("Initialized history in %s", self.data_dir)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise HistoryLoadError(path, "file not found") from None
        except json.JSONDecodeError as e:
            raise HistoryLoadError(path, f"invalid JSON ({e.msg})", line=e.lineno) from e

    def iter_records(self) -> Iterator[tuple[int, dict[str, Any]]]:
        """
        Iterate over raw entry records as (line number, dict).

        Blank lines are skipped.
        """
        if not self.history_path.exists():
            return

        with self.history_path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as e:
                    raise HistoryLoadError(self.history_path, f"invalid JSON ({e.msg})", line=lineno) from e
                if not isinstance(record, dict):
                    raise HistoryLoadError(self.history_path, "entry is not a JSON object", line=lineno)
                yield lineno, record

    def load_initial_state(self) -> GridState:
        data = self._read_json(self.initial_path)
        try:
            return GridState.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise HistoryLoadError(self.initial_path, f"invalid grid state ({e})") from e

    def load_cursor(self, entry_count: int) -> int:
        if not self.cursor_path.exists():
            return entry_count
        data = self._read_json(self.cursor_path)
        cursor = data.get("cursor") if isinstance(data, dict) else None
        if not isinstance(cursor, int) or isinstance(cursor, bool):
            raise HistoryLoadError(self.cursor_path, "cursor must be an integer")
        if not 0 <= cursor <= entry_count:
            raise HistoryLoadError(self.cursor_path, f"cursor {cursor} out of range [0, {entry_count}]")
        return cursor

    def load(self, registry: ChangeTypeRegistry, **options: Any) -> History:
        """
        Load the persisted history.

        Args:
            registry: Resolves each entry's type tag to its decoder
            **options: Passed to History (max_entries, checkpoint_interval)

        Raises:
            UnknownTypeError: An entry's type tag is missing or unregistered
            ChangeFormatError: An entry's variant fields are malformed
            HistoryLoadError: A file is missing or unreadable
        """
        initial_state = self.load_initial_state()

        entries: list[HistoryEntry] = []
        for lineno, record in self.iter_records():
            try:
                entries.append(HistoryEntry.from_dict(record, registry))
            except (UnknownTypeError, ChangeFormatError) as e:
                logger.warning("%s:%d: %s", self.history_path, lineno, e)
                raise
            except ValueError as e:
                raise HistoryLoadError(self.history_path, str(e), line=lineno) from e

        cursor = self.load_cursor(len(entries))
        history = History(initial_state, registry=registry, entries=entries, cursor=cursor, **options)
        logger.info("Loaded %d entries from %s (cursor=%d)", len(entries), self.data_dir, cursor)
        return history

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def save(self, history: History) -> None:
        """Persist the history (initial state, entries, cursor)."""
        self._ensure_dir()
        data = history.to_dict()
        _write_atomic(self.initial_path, json.dumps(data["initial"], indent=2, sort_keys=True) + "\n")
        lines = [json.dumps(record, separators=(",", ":")) + "\n" for record in data["entries"]]
        _write_atomic(self.history_path, "".join(lines))
        _write_atomic(self.cursor_path, json.dumps({"cursor": data["cursor"]}) + "\n")
        logger.info("Saved %d entries to %s", len(lines), self.data_dir)
