#!/usr/bin/env python3
"""Validate local capacity-engine environment readiness."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from capacity_engine.domain.models import UtilizationStatus
from capacity_engine.services.identity import generate_uuid_v5, is_valid_uuid_v5
from capacity_engine.services.time_bucketer import generate_time_periods
from capacity_engine.services.utilization_calculator import calculate_utilization_for_period
from capacity_engine.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = ["numpy", "pandas", "pydantic", "pytest"]
    import_errors: list[str] = []
    for module_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    settings = get_settings()

    # CHECK 3: Utilization smoke calculation (40% + 60% over one full week)
    try:
        period = generate_time_periods("2024-01-01", "2024-01-08", "weekly")[0]
        utilization = calculate_utilization_for_period(
            period,
            [
                {"start_date": "2024-01-01", "end_date": "2024-01-08", "allocation_percent": 40, "project_id": "a"},
                {"start_date": "2024-01-01", "end_date": "2024-01-08", "allocation_percent": 60, "project_id": "b"},
            ],
            [],
            [],
            default_weekly_hours=settings.default_weekly_hours,
        )
        if utilization.status is not UtilizationStatus.OVERUTILIZED:
            raise RuntimeError(f"expected OVERUTILIZED, got {utilization.status.value}")
        ok, line = _print_result(
            "Utilization calculation",
            True,
            f": {utilization.utilization_percent:.1f}% {utilization.status.value}",
        )
    except (RuntimeError, ValueError, IndexError) as exc:
        ok, line = _print_result("Utilization calculation", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4: Deterministic identity generation
    first = generate_uuid_v5("system@example.com", settings.identity_namespace)
    second = generate_uuid_v5("system@example.com", settings.identity_namespace)
    if first == second and is_valid_uuid_v5(first):
        ok, line = _print_result("Deterministic UUID v5", True, f": {first}")
    else:
        ok, line = _print_result("Deterministic UUID v5", False, f"{first} != {second}")
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(f" {settings.app_name} Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
