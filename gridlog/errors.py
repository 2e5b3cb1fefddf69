"""
Error taxonomy for gridlog.

Every error names the offending type tag or missing resource so that the
command surface can report it without further context.
"""

from __future__ import annotations

from pathlib import Path


class HistoryError(Exception):
    """Base class for all history errors."""


class PreconditionError(HistoryError, LookupError):
    """A change's required resource (column, row index) is absent."""

    def __init__(self, resource: str, detail: str = ""):
        self.resource = resource
        self.detail = detail
        message = f"Missing {resource}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnknownTypeError(HistoryError):
    """Deserialization met a type tag that is not registered (or no tag at all)."""

    def __init__(self, tag: str | None):
        self.tag = tag
        if tag:
            message = f"Unknown change type: {tag!r}"
        else:
            message = "Change record has no 'type' field"
        super().__init__(message)


class DuplicateTagError(HistoryError, ValueError):
    """A type tag was registered twice."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Change type already registered: {tag!r}")


class NoOpError(HistoryError):
    """Undo or redo requested with nothing available in that direction."""

    def __init__(self, direction: str):
        self.direction = direction
        super().__init__(f"Nothing to {direction}")


class ChangeFormatError(HistoryError):
    """The variant-specific fields of a serialized change are malformed."""

    def __init__(self, tag: str, detail: str):
        self.tag = tag
        self.detail = detail
        super().__init__(f"Malformed {tag!r} change: {detail}")


class HistoryLoadError(HistoryError):
    """A persisted history could not be read."""

    def __init__(self, path: Path, detail: str, line: int | None = None):
        self.path = path
        self.line = line
        self.detail = detail
        where = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"Cannot load history from {where}: {detail}")


class HistoryIntegrityError(HistoryError):
    """A cached state disagrees with the state recomputed by replay."""

    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Cached state at position {position} does not match replay")
