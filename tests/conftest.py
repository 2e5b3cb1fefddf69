"""Pytest configuration and fixtures."""

import pytest

from gridlog.changes import default_registry
from gridlog.grid.state import GridState
from gridlog.history.history import History
from gridlog.history.registry import ChangeTypeRegistry


@pytest.fixture
def registry() -> ChangeTypeRegistry:
    """Registry with the built-in change types."""
    return default_registry()


@pytest.fixture
def empty_grid() -> GridState:
    """Columns A and B, no rows."""
    return GridState.from_records(["A", "B"], [])


@pytest.fixture
def people_grid() -> GridState:
    """Small grid with repeated and blank values."""
    return GridState.from_records(
        ["name", "city", "country"],
        [
            ["Ada", "London", "UK"],
            ["Grace", "New York", "USA"],
            ["Alan", "London", None],
            ["Edsger", None, "NL"],
        ],
    )


@pytest.fixture
def history(people_grid: GridState, registry: ChangeTypeRegistry) -> History:
    """Empty history over the people grid."""
    return History(people_grid, registry=registry)
