"""Split one allocation period into consecutive 7-day windows."""

from __future__ import annotations

from dataclasses import replace

from capacity_engine.domain.models import AllocationPeriod
from capacity_engine.utils.dates import add_days


def split_into_weekly_periods(allocation: AllocationPeriod) -> list[AllocationPeriod]:
    periods: list[AllocationPeriod] = []
    current_start = allocation.start_date

    while current_start <= allocation.end_date:
        week_end = add_days(current_start, 6)
        actual_end = week_end if week_end <= allocation.end_date else allocation.end_date
        periods.append(replace(allocation, start_date=current_start, end_date=actual_end))
        current_start = add_days(actual_end, 1)

    return periods
