from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

# Inclusive upper bound of a UTC day (Python keeps microseconds)
END_OF_DAY = time(23, 59, 59, 999999)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD"; None / "" -> None. Raises ValueError on bad input."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected a YYYY-MM-DD string, got {type(value).__name__}")
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [00:00:00.000000, 23:59:59.999999] for one calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    last_day = calendar.monthrange(year, month)[1]
    start, _ = day_bounds(date(year, month, 1))
    _, end = day_bounds(date(year, month, last_day))
    return start, end


def year_bounds(year: int) -> tuple[datetime, datetime]:
    start, _ = day_bounds(date(year, 1, 1))
    _, end = day_bounds(date(year, 12, 31))
    return start, end


def is_last_day_of_month(day: date) -> bool:
    return (day + timedelta(days=1)).month != day.month


def is_last_day_of_year(day: date) -> bool:
    return (day + timedelta(days=1)).year != day.year
