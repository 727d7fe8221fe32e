"""Domain-level validation rules for utilization status classification."""

from __future__ import annotations

from dataclasses import dataclass

from capacity_engine.utils.config import Settings


@dataclass(frozen=True)
class UtilizationThresholds:
    overutilized: float = 100.0
    optimal: float = 80.0
    average: float = 60.0
    underutilized: float = 40.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "UtilizationThresholds":
        return cls(
            overutilized=settings.utilization_overutilized_threshold,
            optimal=settings.utilization_optimal_threshold,
            average=settings.utilization_average_threshold,
            underutilized=settings.utilization_underutilized_threshold,
        )


DEFAULT_THRESHOLDS = UtilizationThresholds()


def validate_utilization_thresholds(thresholds: UtilizationThresholds) -> None:
    if thresholds.underutilized < 0.0:
        raise ValueError("underutilized threshold must be >= 0")
    if not thresholds.underutilized < thresholds.average:
        raise ValueError("average threshold must be greater than underutilized")
    if not thresholds.average < thresholds.optimal:
        raise ValueError("optimal threshold must be greater than average")
    if not thresholds.optimal < thresholds.overutilized:
        raise ValueError("overutilized threshold must be greater than optimal")
