"""gridlog - Undoable change history for tabular project data."""

__version__ = "0.1.0"
