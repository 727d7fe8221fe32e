"""Open-interval overlap tests between records and reporting periods."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from capacity_engine.domain.models import TimePeriod, read_field
from capacity_engine.utils.dates import coerce_timestamp, fractional_days


RecordT = TypeVar("RecordT")


def overlaps(start: Any, end: Any, period: TimePeriod) -> bool:
    """True iff ``start < period.end`` and ``end > period.start``.

    Boundary-touching intervals do not overlap, so a zero-length interval
    overlaps only when it lies strictly inside the period. Unparseable bounds
    never overlap.
    """

    interval_start = coerce_timestamp(start)
    interval_end = coerce_timestamp(end)
    return bool(interval_start < period.end and interval_end > period.start)


def record_overlaps(record: Any, period: TimePeriod) -> bool:
    return overlaps(read_field(record, "start_date"), read_field(record, "end_date"), period)


def filter_overlapping(records: Iterable[RecordT], period: TimePeriod) -> list[RecordT]:
    return [record for record in records if record_overlaps(record, period)]


def overlap_days(start: Any, end: Any, period: TimePeriod) -> float:
    """Fractional days of ``[start, end)`` clipped to the period, or 0."""

    interval_start = coerce_timestamp(start)
    interval_end = coerce_timestamp(end)
    clipped_start = interval_start if interval_start > period.start else period.start
    clipped_end = interval_end if interval_end < period.end else period.end
    if not clipped_start < clipped_end:
        return 0.0
    return fractional_days(clipped_start, clipped_end)
