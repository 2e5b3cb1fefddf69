"""Entry identifiers: ULIDs, so ids sort in the order entries were created."""

from __future__ import annotations

import os
from datetime import datetime

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_LENGTH = 26


def new_entry_id(created: datetime | None = None) -> str:
    """
    Generate a ULID for a history entry.

    The first 48 bits are the creation time in milliseconds (taken from
    `created` when given, so an entry's id and timestamp agree), the
    remaining 80 bits are random. Encoded as 26 Crockford base32 chars.
    """
    millis = int((created or datetime.now()).timestamp() * 1000)
    if not 0 <= millis < 1 << 48:
        raise ValueError(f"Timestamp out of range for an entry id: {created!r}")

    value = (millis << 80) | int.from_bytes(os.urandom(10), "big")
    chars = []
    for _ in range(_LENGTH):
        value, digit = divmod(value, 32)
        chars.append(_ALPHABET[digit])
    return "".join(reversed(chars))
