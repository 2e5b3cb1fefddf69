"""Field coercion shared by the built-in change decoders."""

from __future__ import annotations

from typing import Any


def require_str(fields: dict[str, Any], key: str) -> str:
    value = fields[key]
    if not isinstance(value, str) or not value:
        raise TypeError(f"{key!r} must be a non-empty string, got {value!r}")
    return value


def optional_int(fields: dict[str, Any], key: str) -> int | None:
    value = fields.get(key)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{key!r} must be an integer, got {value!r}")
    return value


def require_int(fields: dict[str, Any], key: str) -> int:
    value = optional_int(fields, key)
    if value is None:
        raise KeyError(key)
    return value


def int_tuple(fields: dict[str, Any], key: str) -> tuple[int, ...]:
    values = fields[key]
    if not isinstance(values, (list, tuple)):
        raise TypeError(f"{key!r} must be a list of integers")
    for value in values:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{key!r} must be a list of integers, got {value!r}")
    return tuple(values)


def scalar(value: Any, key: str) -> Any:
    """Require a JSON scalar (str, number, bool or null) for a value matched against cells."""
    if value is not None and not isinstance(value, (str, int, float, bool)):
        raise TypeError(f"{key!r} must be a string, number, boolean or null, got {value!r}")
    return value
