"""
Project history: an ordered log of applied changes plus a cursor.

The cursor ranges over [0, N]; position 0 is the initial state and position
k is the state after the first k entries. Applying a change after an undo
discards the redo tail: redo history is not kept across a divergent edit.

INVARIANT: replaying entries[:cursor] from initial_state reproduces
current_state() exactly, whether or not intermediate states are cached.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Mapping, Sequence

from ..errors import HistoryIntegrityError, NoOpError
from ..grid.state import GridState
from .change import Change
from .entry import HistoryEntry, create_entry
from .registry import ChangeTypeRegistry

logger = logging.getLogger(__name__)


class History:
    """
    Navigable change log for a single project.

    All reads and writes go through one re-entrant lock, so there is at most
    one in-flight apply/undo/redo and reads never interleave with a write.

    Checkpointing controls which resulting states are cached on entries:
    checkpoint_interval=1 caches every state, k caches every k-th position,
    0 caches nothing (every read replays).

    max_entries bounds the undo window. It is applied on construction too,
    so a history loaded under a lower limit is folded right away.
    """

    def __init__(
        self,
        initial_state: GridState,
        *,
        registry: ChangeTypeRegistry | None = None,
        entries: Sequence[HistoryEntry] = (),
        cursor: int | None = None,
        max_entries: int | None = None,
        checkpoint_interval: int = 1,
    ):
        if checkpoint_interval < 0:
            raise ValueError("checkpoint_interval must be >= 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be a positive integer")

        self._initial = initial_state
        self._entries: list[HistoryEntry] = list(entries)
        self._cursor = len(self._entries) if cursor is None else cursor
        if not 0 <= self._cursor <= len(self._entries):
            raise ValueError(f"cursor {self._cursor} out of range [0, {len(self._entries)}]")

        self.registry = registry
        self.max_entries = max_entries
        self.checkpoint_interval = checkpoint_interval
        self._lock = threading.RLock()
        self._enforce_retention()

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def initial_state(self) -> GridState:
        with self._lock:
            return self._initial

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def can_undo(self) -> bool:
        with self._lock:
            return self._cursor > 0

    def can_redo(self) -> bool:
        with self._lock:
            return self._cursor < len(self._entries)

    def undo_description(self) -> str | None:
        """Description of the entry the next undo would revert."""
        with self._lock:
            if self._cursor > 0:
                return self._entries[self._cursor - 1].description
            return None

    def redo_description(self) -> str | None:
        """Description of the entry the next redo would re-apply."""
        with self._lock:
            if self._cursor < len(self._entries):
                return self._entries[self._cursor].description
            return None

    def current_state(self) -> GridState:
        """State at the cursor, from the nearest cached checkpoint."""
        with self._lock:
            return self._state_at(self._cursor)

    def state_at(self, position: int) -> GridState:
        """State after the first `position` entries."""
        with self._lock:
            self._check_position(position)
            return self._state_at(position)

    def replay_state(self, position: int | None = None) -> GridState:
        """
        Recompute a state from the initial state, ignoring every cache.

        This is the recovery path; it must agree with current_state().
        """
        with self._lock:
            position = self._cursor if position is None else position
            self._check_position(position)
            state = self._initial
            for entry in self._entries[:position]:
                state = entry.change.apply(state)
            return state

    def verify(self) -> int:
        """
        Check every cached state against replay.

        Returns:
            Number of cached states checked

        Raises:
            HistoryIntegrityError: On the first mismatch
        """
        with self._lock:
            checked = 0
            state = self._initial
            for position, entry in enumerate(self._entries, start=1):
                state = entry.change.apply(state)
                if entry.state is not None:
                    checked += 1
                    if entry.state != state:
                        raise HistoryIntegrityError(position)
            return checked

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    def apply_change(self, change: Change, description: str | None = None) -> HistoryEntry:
        """
        Apply a change at the cursor and record it.

        On success the redo tail is discarded, the entry appended and the
        cursor advanced. On failure nothing changes and the error from
        Change.apply propagates.
        """
        with self._lock:
            before = self._state_at(self._cursor)
            try:
                after = change.apply(before)
            except Exception as e:
                logger.warning("Change %s rejected: %s", change.type_tag(), e)
                raise

            position = self._cursor + 1
            entry = create_entry(
                change,
                description=description,
                state=after if self._is_checkpoint(position) else None,
            )
            self._commit([entry])
            logger.debug("Applied %s (cursor=%d)", entry.type_tag, self._cursor)
            return entry

    def extend(self, records: Iterable[Mapping[str, Any] | Change]) -> list[HistoryEntry]:
        """
        Apply a sequence of changes as one transaction.

        Serialized records are decoded through the registry first; then
        every change is applied to a scratch state. Nothing is committed
        unless all of them succeed.
        """
        with self._lock:
            pending: list[tuple[Change, str | None]] = []
            for record in records:
                if isinstance(record, Change):
                    pending.append((record, None))
                    continue
                if self.registry is None:
                    raise ValueError("History has no registry; cannot decode serialized changes")
                description = record.get("description")
                pending.append((self.registry.decode(record), str(description) if description else None))

            state = self._state_at(self._cursor)
            new_entries: list[HistoryEntry] = []
            for offset, (change, description) in enumerate(pending, start=1):
                state = change.apply(state)
                position = self._cursor + offset
                new_entries.append(
                    create_entry(
                        change,
                        description=description,
                        state=state if self._is_checkpoint(position) else None,
                    )
                )

            if new_entries:
                self._commit(new_entries)
                logger.info("Applied %d changes (cursor=%d)", len(new_entries), self._cursor)
            return new_entries

    def undo(self) -> HistoryEntry:
        """
        Step the cursor back one entry.

        Returns:
            The entry that was undone

        Raises:
            NoOpError: If the cursor is already at the initial state
        """
        with self._lock:
            if self._cursor == 0:
                raise NoOpError("undo")
            self._cursor -= 1
            entry = self._entries[self._cursor]
            logger.debug("Undo %s (cursor=%d)", entry.type_tag, self._cursor)
            return entry

    def redo(self) -> HistoryEntry:
        """
        Step the cursor forward one entry.

        Returns:
            The entry that was re-applied

        Raises:
            NoOpError: If there is no entry past the cursor
        """
        with self._lock:
            if self._cursor == len(self._entries):
                raise NoOpError("redo")
            entry = self._entries[self._cursor]
            self._cursor += 1
            logger.debug("Redo %s (cursor=%d)", entry.type_tag, self._cursor)
            return entry

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict (cached states excluded)."""
        with self._lock:
            return {
                "initial": self._initial.to_dict(),
                "cursor": self._cursor,
                "entries": [e.to_dict() for e in self._entries],
            }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        registry: ChangeTypeRegistry,
        **options: Any,
    ) -> History:
        """
        Reconstruct from to_dict() output.

        Raises:
            UnknownTypeError: If any entry's type tag is not registered
        """
        entries = [HistoryEntry.from_dict(record, registry) for record in data.get("entries", [])]
        return cls(
            GridState.from_dict(data.get("initial", {})),
            registry=registry,
            entries=entries,
            cursor=data.get("cursor"),
            **options,
        )

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _check_position(self, position: int) -> None:
        if not 0 <= position <= len(self._entries):
            raise IndexError(f"position {position} out of range [0, {len(self._entries)}]")

    def _is_checkpoint(self, position: int) -> bool:
        return self.checkpoint_interval > 0 and position % self.checkpoint_interval == 0

    def _state_at(self, position: int) -> GridState:
        # Walk back to the nearest cached state, then replay forward
        start = position
        while start > 0 and self._entries[start - 1].state is None:
            start -= 1
        state = self._entries[start - 1].state if start > 0 else self._initial
        assert state is not None

        for index in range(start, position):
            entry = self._entries[index]
            state = entry.change.apply(state)
            if self._is_checkpoint(index + 1):
                self._entries[index] = entry.with_state(state)
        return state

    def _commit(self, new_entries: list[HistoryEntry]) -> None:
        dropped = len(self._entries) - self._cursor
        if dropped:
            logger.debug("Discarding %d redo entries", dropped)
        del self._entries[self._cursor:]
        self._entries.extend(new_entries)
        self._cursor += len(new_entries)
        self._enforce_retention()

    def _enforce_retention(self) -> None:
        if self.max_entries is None or len(self._entries) <= self.max_entries:
            return
        # Fold the oldest entries into the initial state; entries past the
        # cursor stay until the next commit truncates them
        excess = min(len(self._entries) - self.max_entries, self._cursor)
        if excess == 0:
            return
        self._initial = self._state_at(excess)
        del self._entries[:excess]
        self._cursor -= excess
        logger.info("Folded %d oldest entries into the initial state", excess)
