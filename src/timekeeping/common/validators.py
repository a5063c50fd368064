from __future__ import annotations

from typing import Any, Iterable

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_number_in_range(value: Any, field_name: str, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not low <= number <= high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}")
    return number


def normalize_id_list(values: Iterable[Any] | None, field_name: str, *, exclude: int | None = None) -> tuple[int, ...]:
    """De-duplicate a list of ids, keeping first-seen order."""
    seen: list[int] = []
    for raw in values or ():
        number = require_positive_int(raw, field_name)
        if number != exclude and number not in seen:
            seen.append(number)
    return tuple(seen)
