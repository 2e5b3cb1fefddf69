"""
History entries: a change plus its provenance.

Entries are immutable. The resulting state is cached on the entry when the
history checkpoints it, but it is never serialized; on load it is recomputed
by replay.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..grid.state import GridState
from .change import Change, encode_change
from .ids import new_entry_id

if TYPE_CHECKING:
    from .registry import ChangeTypeRegistry


def parse_timestamp(value: Any) -> datetime:
    """Accept ISO-8601 strings or epoch seconds; always return an aware datetime."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise ValueError(f"Invalid timestamp: {value!r}")


@dataclass(frozen=True)
class HistoryEntry:
    """A single applied change in a project history."""

    change: Change
    description: str
    timestamp: datetime
    entry_id: str
    # Cached resulting state (None when not checkpointed)
    state: GridState | None = field(default=None, compare=False, repr=False)

    @property
    def type_tag(self) -> str:
        return self.change.type_tag()

    def with_state(self, state: GridState | None) -> HistoryEntry:
        return replace(self, state=state)

    def without_state(self) -> HistoryEntry:
        return replace(self, state=None)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted envelope (cached state excluded)."""
        envelope = encode_change(self.change)
        return {
            "type": envelope.pop("type"),
            "id": self.entry_id,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
            **envelope,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], registry: ChangeTypeRegistry) -> HistoryEntry:
        """
        Reconstruct from a persisted envelope.

        Raises:
            UnknownTypeError: If the record's type tag is missing or unregistered
            ChangeFormatError: If the variant fields are malformed
        """
        change = registry.decode(data)
        timestamp = data.get("timestamp")
        return cls(
            change=change,
            description=str(data.get("description") or change.describe()),
            timestamp=parse_timestamp(timestamp) if timestamp is not None else datetime.now(timezone.utc),
            entry_id=str(data.get("id") or new_entry_id()),
        )


def create_entry(
    change: Change,
    *,
    description: str | None = None,
    timestamp: datetime | None = None,
    entry_id: str | None = None,
    state: GridState | None = None,
) -> HistoryEntry:
    """
    Factory function for creating entries.

    Provenance (time, id) is stamped here, outside of Change.apply.
    Descriptions from decoded JSON may be any value; they are stored as text.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    return HistoryEntry(
        change=change,
        description=str(description) if description else change.describe(),
        timestamp=timestamp,
        entry_id=entry_id or new_entry_id(timestamp),
        state=state,
    )
