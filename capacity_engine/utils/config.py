"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


RFC4122_DNS_NAMESPACE = "6ba7b810-9dad-11d1-80b4-00c04fd430c8"


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str

    default_weekly_hours: float
    standard_week_hours: float
    identity_namespace: str
    validation_sum_tolerance: float

    utilization_overutilized_threshold: float
    utilization_optimal_threshold: float
    utilization_average_threshold: float
    utilization_underutilized_threshold: float

    heatmap_max_workers: int
    migration_fail_on_invalid: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, resolved once from ``CAPACITY_*`` variables."""

    return Settings(
        app_name=_env_str("CAPACITY_APP_NAME", "Capacity Engine"),
        app_version=_env_str("CAPACITY_APP_VERSION", "1.0.0"),
        log_level=_env_str("CAPACITY_LOG_LEVEL", "INFO"),
        default_weekly_hours=_env_float("CAPACITY_DEFAULT_WEEKLY_HOURS", 40.0),
        standard_week_hours=_env_float("CAPACITY_STANDARD_WEEK_HOURS", 40.0),
        identity_namespace=_env_str("CAPACITY_IDENTITY_NAMESPACE", RFC4122_DNS_NAMESPACE),
        validation_sum_tolerance=_env_float("CAPACITY_VALIDATION_SUM_TOLERANCE", 0.01),
        utilization_overutilized_threshold=_env_float(
            "CAPACITY_UTILIZATION_OVERUTILIZED_THRESHOLD", 100.0
        ),
        utilization_optimal_threshold=_env_float(
            "CAPACITY_UTILIZATION_OPTIMAL_THRESHOLD", 80.0
        ),
        utilization_average_threshold=_env_float(
            "CAPACITY_UTILIZATION_AVERAGE_THRESHOLD", 60.0
        ),
        utilization_underutilized_threshold=_env_float(
            "CAPACITY_UTILIZATION_UNDERUTILIZED_THRESHOLD", 40.0
        ),
        heatmap_max_workers=_env_int("CAPACITY_HEATMAP_MAX_WORKERS", 1),
        migration_fail_on_invalid=_env_bool("CAPACITY_MIGRATION_FAIL_ON_INVALID", True),
    )
