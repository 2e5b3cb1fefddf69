"""
Built-in change types.

Each variant is registered independently; third-party variants register on
the same registry with ChangeTypeRegistry.register_change().
"""

from __future__ import annotations

from ..history.change import Change
from ..history.registry import ChangeTypeRegistry
from .cells import BlankDown, CellEdit, FillDown, MassEdit
from .columns import AddColumn, MoveColumn, RemoveColumn, RenameColumn
from .recon import ClearRecon, ReconcileColumn
from .rows import FilterRows, RemoveRows, StarRows

BUILTIN_CHANGES: tuple[type[Change], ...] = (
    AddColumn,
    RemoveColumn,
    RenameColumn,
    MoveColumn,
    CellEdit,
    MassEdit,
    FillDown,
    BlankDown,
    RemoveRows,
    FilterRows,
    StarRows,
    ReconcileColumn,
    ClearRecon,
)


def register_builtin_changes(registry: ChangeTypeRegistry) -> ChangeTypeRegistry:
    """Register every built-in variant on `registry`."""
    for change_cls in BUILTIN_CHANGES:
        registry.register_change(change_cls)
    return registry


def default_registry() -> ChangeTypeRegistry:
    """A fresh registry holding the built-in variants."""
    return register_builtin_changes(ChangeTypeRegistry())


__all__ = [
    "AddColumn",
    "RemoveColumn",
    "RenameColumn",
    "MoveColumn",
    "CellEdit",
    "MassEdit",
    "FillDown",
    "BlankDown",
    "RemoveRows",
    "FilterRows",
    "StarRows",
    "ReconcileColumn",
    "ClearRecon",
    "BUILTIN_CHANGES",
    "register_builtin_changes",
    "default_registry",
]
