"""
Tabular project data.

GridState is the immutable value the change history operates on. It exposes
read accessors only; every derivation returns a new state.
"""

from .state import Cell, Column, GridState, Recon, Row, is_blank
from .csvio import read_csv, write_csv

__all__ = [
    "Cell",
    "Column",
    "GridState",
    "Recon",
    "Row",
    "is_blank",
    "read_csv",
    "write_csv",
]
