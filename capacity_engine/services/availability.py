"""Weekly-hours baseline resolution from an availability history."""

from __future__ import annotations

from typing import Any, Sequence

from capacity_engine.domain.models import read_field


DEFAULT_WEEKLY_HOURS = 40.0


def resolve_weekly_hours(
    availability: Sequence[Any],
    default_weekly_hours: float = DEFAULT_WEEKLY_HOURS,
) -> float:
    """Return ``total_hours_per_week`` of the last supplied record.

    The history is not sorted here and no effective-date lookup is done:
    callers pass records ascending by ``effective_from`` and the final entry
    wins. An empty history yields ``default_weekly_hours``.
    """

    if not availability:
        return float(default_weekly_hours)
    return float(read_field(availability[-1], "total_hours_per_week"))
