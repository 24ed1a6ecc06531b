"""Coercion of loosely-typed JSON request values."""

from typing import Any

from ..utils.exceptions import ValidationError

SQLITE_MAX_INT = 2**63 - 1


def parse_id(value: Any, message: str) -> int:
    """
    Turn a JSON id ("12", 12, 12.0) into a positive int that fits SQLite.

    Booleans and fractional numbers are rejected instead of being truncated.
    """
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(message)
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(message)
    if not 0 < result <= SQLITE_MAX_INT:
        raise ValidationError(message)
    return result
