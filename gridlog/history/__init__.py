"""
Change history for tabular project data.

Mutations are typed, serializable Change values applied to an immutable
GridState. The history records them in order and moves a cursor for
undo/redo.

Components:
- change: The Change contract and its {"type": tag, ...} envelope
- registry: Type tag -> decoder lookup used when loading
- entry: A change plus provenance (description, timestamp, id)
- history: Ordered entries and cursor; apply, undo, redo, replay
- store: JSON/JSONL persistence of a project history

Design principles:
- Deterministic: apply() depends only on the change and the prior state
- Atomic: a failed apply leaves entries and cursor untouched
- Replayable: cached states always equal states recomputed from the log
"""

from .change import Change, encode_change
from .entry import HistoryEntry, create_entry
from .history import History
from .registry import ChangeTypeRegistry
from .store import HistoryStore

__all__ = [
    "Change",
    "encode_change",
    "HistoryEntry",
    "create_entry",
    "History",
    "ChangeTypeRegistry",
    "HistoryStore",
]
