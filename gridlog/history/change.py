"""
Change protocol: a serializable, deterministic mutation of a GridState.

Key design decisions:
- apply() is a pure function of (change, state); no clock, randomness or I/O
- Each variant owns a durable TYPE_TAG that keys its decoder in the registry
- Variants are frozen dataclasses, so value equality is structural
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from ..grid.state import GridState

# Envelope keys owned by the history layer; variant fields may not use them
RESERVED_KEYS = frozenset({"type", "id", "description", "timestamp"})


class Change(ABC):
    """
    Base class for a concrete change to a project's data.

    Subclasses set TYPE_TAG and implement apply, to_fields and from_fields.
    Once released, a TYPE_TAG and its field names are an on-disk contract:
    only new optional fields may be added.
    """

    TYPE_TAG: ClassVar[str] = ""

    def type_tag(self) -> str:
        """Stable identifier used for serialization."""
        return self.TYPE_TAG

    @abstractmethod
    def apply(self, state: GridState) -> GridState:
        """
        Derive the state that results from this change.

        Raises:
            PreconditionError: If a column or row the change needs is absent
        """
        ...

    @abstractmethod
    def to_fields(self) -> dict[str, Any]:
        """Variant-specific fields as a JSON-compatible dict."""
        ...

    @classmethod
    @abstractmethod
    def from_fields(cls, fields: dict[str, Any]) -> Change:
        """Rebuild a change from the output of to_fields()."""
        ...

    def describe(self) -> str:
        """Default human-readable description."""
        return self.type_tag()


def encode_change(change: Change) -> dict[str, Any]:
    """Wrap a change as {"type": tag, ...variant fields...}."""
    tag = change.type_tag()
    if not tag:
        raise ValueError(f"{type(change).__name__} has no TYPE_TAG")
    fields = change.to_fields()
    clash = RESERVED_KEYS.intersection(fields)
    if clash:
        raise ValueError(f"{tag!r} fields use reserved keys: {sorted(clash)}")
    return {"type": tag, **fields}
