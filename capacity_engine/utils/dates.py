"""Calendar helpers shared by the calculation engine and migration transforms.

Two families live here:

- ISO calendar-date string helpers (``YYYY-MM-DD``) used by the migration
  transforms, which compare and step dates as strings.
- Timestamp coercion for the utilization engine, which accepts native dates,
  datetimes, or ISO strings and measures fractional days between instants.
  Coercion never raises: unparseable input becomes ``NaT`` so comparisons are
  false and arithmetic yields ``nan``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd


ISO_DATE_FORMAT = "%Y-%m-%d"
_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ONE_DAY = pd.Timedelta(days=1)


def parse_iso_date(value: str) -> date:
    return datetime.strptime(value, ISO_DATE_FORMAT).date()


def format_iso_date(value: date) -> str:
    return value.strftime(ISO_DATE_FORMAT)


def parse_us_date_to_iso(value: str) -> str:
    """Convert ``M/D/YYYY`` to ``YYYY-MM-DD``; other shapes are returned as-is."""
    parts = value.split("/")
    if len(parts) != 3:
        return value
    month, day, year = parts
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def to_iso_datetime(value: str) -> str:
    """Midnight-UTC timestamp string for a ``M/D/YYYY`` date."""
    return f"{parse_us_date_to_iso(value)}T00:00:00.000Z"


def add_days(value: str, days: int) -> str:
    return format_iso_date(parse_iso_date(value) + timedelta(days=days))


def week_end_date(start: str, week_length: int = 6) -> str:
    if not start:
        return ""
    return add_days(start, week_length)


def days_between(start: str, end: str) -> int:
    """Signed whole-day distance between two ISO dates."""
    return (parse_iso_date(end) - parse_iso_date(start)).days


def week_identifier(value: str) -> str:
    iso_year, iso_week, _ = parse_iso_date(value).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def is_valid_iso_date(value: Any) -> bool:
    """Strict ``YYYY-MM-DD`` shape that also names a real calendar day."""
    if not isinstance(value, str) or _ISO_DATE_PATTERN.fullmatch(value) is None:
        return False
    try:
        parse_iso_date(value)
    except ValueError:
        return False
    return True


def coerce_timestamp(value: Any) -> pd.Timestamp:
    """Best-effort conversion to a naive UTC ``pd.Timestamp`` (``NaT`` on failure).

    Offset-aware input (``...Z``, ``+02:00``) is converted to UTC and made
    naive; naive input is taken to already be UTC.
    """
    if value is None:
        return pd.NaT
    timestamp = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(timestamp):
        return pd.NaT
    return timestamp.tz_convert(None)


def fractional_days(start: Any, end: Any) -> float:
    """Length of ``[start, end)`` in days, not rounded to whole days."""
    delta = coerce_timestamp(end) - coerce_timestamp(start)
    if pd.isna(delta):
        return float("nan")
    return float(delta / _ONE_DAY)
