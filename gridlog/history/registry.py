"""
Change type registry: type tag -> decoder lookup.

Variants register themselves by tag. Loading a history resolves each
record's tag here before any variant field is interpreted, so new change
kinds can be added without touching a central list.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Mapping

from ..errors import ChangeFormatError, DuplicateTagError, UnknownTypeError
from .change import RESERVED_KEYS, Change

logger = logging.getLogger(__name__)

Decoder = Callable[[dict[str, Any]], Change]


class ChangeTypeRegistry:
    """
    Mapping from type tag to decoder.

    Instances are built once at startup and passed to whatever loads
    histories; there is no process-wide default.
    """

    def __init__(self) -> None:
        self._decoders: dict[str, Decoder] = {}

    def register(self, tag: str, decoder: Decoder) -> None:
        """
        Bind a tag to a decoder.

        Raises:
            DuplicateTagError: If the tag is already bound
        """
        if not tag:
            raise ValueError("Change type tag must be a non-empty string")
        if tag in self._decoders:
            raise DuplicateTagError(tag)
        self._decoders[tag] = decoder
        logger.debug("Registered change type %s", tag)

    def register_change(self, change_cls: type[Change]) -> type[Change]:
        """Register a Change subclass under its TYPE_TAG. Returns the class."""
        self.register(change_cls.TYPE_TAG, change_cls.from_fields)
        return change_cls

    def resolve(self, tag: str) -> Decoder:
        """
        Look up the decoder for a tag.

        Raises:
            UnknownTypeError: If the tag is not registered
        """
        try:
            return self._decoders[tag]
        except KeyError:
            raise UnknownTypeError(tag) from None

    def decode(self, data: Mapping[str, Any]) -> Change:
        """
        Rebuild a change from a serialized envelope.

        The "type" field is read first and drives dispatch; the remaining
        non-envelope fields are passed to the variant's decoder untouched.

        Raises:
            UnknownTypeError: Missing or unregistered type tag
            ChangeFormatError: The decoder rejected the variant fields
        """
        tag = data.get("type")
        if not isinstance(tag, str) or not tag.strip():
            raise UnknownTypeError(None)
        decoder = self.resolve(tag)
        fields = {k: v for k, v in data.items() if k not in RESERVED_KEYS}
        try:
            return decoder(fields)
        except KeyError as e:
            raise ChangeFormatError(tag, f"missing field {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            raise ChangeFormatError(tag, str(e)) from e

    def tags(self) -> list[str]:
        """All registered tags, sorted."""
        return sorted(self._decoders)

    def __contains__(self, tag: object) -> bool:
        return tag in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags())
