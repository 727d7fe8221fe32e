from __future__ import annotations

import pytest

from capacity_engine.utils.config import RFC4122_DNS_NAMESPACE, get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch) -> None:
    for name in (
        "CAPACITY_DEFAULT_WEEKLY_HOURS",
        "CAPACITY_IDENTITY_NAMESPACE",
        "CAPACITY_HEATMAP_MAX_WORKERS",
        "CAPACITY_MIGRATION_FAIL_ON_INVALID",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.default_weekly_hours == 40.0
    assert settings.standard_week_hours == 40.0
    assert settings.identity_namespace == RFC4122_DNS_NAMESPACE
    assert settings.heatmap_max_workers == 1
    assert settings.migration_fail_on_invalid is True


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CAPACITY_DEFAULT_WEEKLY_HOURS", "37.5")
    monkeypatch.setenv("CAPACITY_HEATMAP_MAX_WORKERS", "4")
    monkeypatch.setenv("CAPACITY_MIGRATION_FAIL_ON_INVALID", "off")
    monkeypatch.setenv("CAPACITY_UTILIZATION_OPTIMAL_THRESHOLD", "75")

    settings = get_settings()

    assert settings.default_weekly_hours == 37.5
    assert settings.heatmap_max_workers == 4
    assert settings.migration_fail_on_invalid is False
    assert settings.utilization_optimal_threshold == 75.0


def test_blank_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("CAPACITY_STANDARD_WEEK_HOURS", "   ")

    assert get_settings().standard_week_hours == 40.0


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()
