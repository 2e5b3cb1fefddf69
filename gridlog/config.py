"""
Project configuration (gridlog.toml).

Example:

    [history]
    data_dir = ".gridlog"
    max_entries = 500
    checkpoint_interval = 10
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_FILENAME = "gridlog.toml"


@dataclass(frozen=True)
class GridlogConfig:
    data_dir: str = ".gridlog"
    max_entries: int | None = None
    checkpoint_interval: int = 1

    def history_options(self) -> dict[str, Any]:
        """Keyword arguments for History / HistoryStore.load()."""
        return {
            "max_entries": self.max_entries,
            "checkpoint_interval": self.checkpoint_interval,
        }


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def load_config(path: Path) -> GridlogConfig:
    """
    Load configuration from TOML.

    Only the [history] table is read; unknown keys are ignored.

    Raises:
        ValueError: If the file is malformed or a value is out of range
    """
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e

    history = _coerce_dict(data.get("history"))

    data_dir = str(history.get("data_dir", ".gridlog")).strip()
    if not data_dir:
        raise ValueError("data_dir must not be empty")

    max_entries = history.get("max_entries")
    if max_entries is not None:
        if not isinstance(max_entries, int) or isinstance(max_entries, bool) or max_entries < 1:
            raise ValueError("max_entries must be a positive integer")

    checkpoint_interval = history.get("checkpoint_interval", 1)
    if not isinstance(checkpoint_interval, int) or isinstance(checkpoint_interval, bool) or checkpoint_interval < 0:
        raise ValueError("checkpoint_interval must be a non-negative integer")

    return GridlogConfig(
        data_dir=data_dir,
        max_entries=max_entries,
        checkpoint_interval=checkpoint_interval,
    )


def find_config(start: Path) -> Path | None:
    """Find gridlog.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config(project_dir: Path) -> GridlogConfig:
    """Config for a project directory, or defaults when none is found."""
    path = find_config(project_dir)
    return load_config(path) if path is not None else GridlogConfig()
