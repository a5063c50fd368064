from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_year_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM string into (year, month)."""
    try:
        parsed = datetime.strptime((value or "").strip(), "%Y-%m")
    except ValueError:
        raise ValidationError(f"Invalid month {value!r} (expected YYYY-MM)")
    return parsed.year, parsed.month


def parse_clock_time(value: str) -> time:
    """Parse HH:MM string into time."""
    try:
        return datetime.strptime((value or "").strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"Invalid time {value!r} (expected HH:MM)")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    first = date(year, month, 1)
    next_first = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)


def elapsed_milliseconds(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two instants, never negative."""
    return max((end - start) // timedelta(milliseconds=1), 0)


def worked_hours(start: datetime, end: datetime) -> float:
    """Hours between two instants rounded to 2 decimals, never negative."""
    return round(max((end - start).total_seconds(), 0.0) / 3600, 2)
