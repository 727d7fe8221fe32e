"""Split a reporting range into contiguous daily, weekly, or monthly buckets."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from capacity_engine.domain.models import Granularity, TimePeriod
from capacity_engine.utils.dates import coerce_timestamp


def _short_day(value: datetime) -> str:
    return f"{value:%b} {value.day}"


def _first_of_next_month(value: datetime) -> datetime:
    if value.month == 12:
        return datetime(value.year + 1, 1, 1)
    return datetime(value.year, value.month + 1, 1)


def _to_datetime(value: Any) -> datetime:
    return coerce_timestamp(value).to_pydatetime()


def generate_time_periods(
    range_start: Any,
    range_end: Any,
    granularity: Granularity | str,
) -> list[TimePeriod]:
    """Cover ``[range_start, range_end)`` exactly with ordered buckets.

    Daily buckets advance one day, weekly buckets seven days, monthly buckets
    to the first of the next calendar month. The last bucket is clipped to
    ``range_end`` and may be shorter than the granularity unit.
    """

    unit = Granularity(granularity)
    end = _to_datetime(range_end)
    current = _to_datetime(range_start)
    periods: list[TimePeriod] = []

    while current < end:
        if unit is Granularity.DAILY:
            period_end = current + timedelta(days=1)
            label = _short_day(current)
        elif unit is Granularity.WEEKLY:
            period_end = current + timedelta(days=7)
            label = f"{_short_day(current)} - {_short_day(period_end - timedelta(days=1))}"
        else:
            period_end = _first_of_next_month(current)
            label = f"{current:%b %Y}"

        if period_end > end:
            period_end = end

        periods.append(TimePeriod(start=current, end=period_end, label=label))
        current = period_end

    return periods
