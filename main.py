"""
main.py: command-line entry point for the capacity engine.

Compress a migration envelope of allocation records:

    python main.py compress allocations.json compressed.json

Compute a utilization heatmap from a request document (query + resources):

    python main.py heatmap heatmap-request.json

This file does NOT contain engine logic. See capacity_engine/services for the
calculation and migration code.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from capacity_engine.domain.interchange import HeatmapRequestDocument, MigrationEnvelope
from capacity_engine.domain.models import ResourceInput
from capacity_engine.services.heatmap_service import HeatmapService
from capacity_engine.services.migration_service import MigrationService, MigrationValidationError
from capacity_engine.services.task_tree import build_tasks_by_project
from capacity_engine.utils.config import get_settings
from capacity_engine.utils.logger import redirect_log_stream


SEPARATOR_LINE = "=" * 60


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
        handle.write("\n")


def run_compress(input_path: Path, output_path: Path) -> int:
    try:
        envelope = MigrationEnvelope.model_validate(_read_json(input_path))
    except ValidationError as exc:
        print(f"  Invalid envelope: {exc}")
        return 2

    envelope.metadata.setdefault("source_file", str(input_path))
    service = MigrationService(settings=get_settings())
    try:
        compressed, validation = service.compress_envelope(envelope)
    except MigrationValidationError as exc:
        print(SEPARATOR_LINE)
        print("  Validation failed")
        for error in exc.result.errors:
            print(f"    - {error}")
        print(SEPARATOR_LINE)
        return 1

    _write_json(output_path, compressed.to_document())
    metadata = compressed.metadata
    print(
        f"  {metadata.get('raw_allocations', 0)} -> {metadata.get('total_allocations', 0)} "
        f"allocations ({metadata.get('reduction_percent', 0.0)}% reduction), "
        f"valid={validation.is_valid}, written to {output_path}"
    )
    return 0 if validation.is_valid else 1


def _to_resource_input(document: Any) -> ResourceInput:
    return ResourceInput(
        resource_id=document.id,
        name=document.name,
        resource_type=document.resource_type,
        email=document.email,
        department_id=document.department_id,
        department_name=document.department_name,
        allocations=list(document.allocations),
        availability=list(document.availability),
        unavailability=list(document.unavailability),
        tasks_by_project=build_tasks_by_project(document.tasks) if document.tasks else None,
    )


def run_heatmap(input_path: Path) -> int:
    try:
        request = HeatmapRequestDocument.model_validate(_read_json(input_path))
    except ValidationError as exc:
        print(f"  Invalid heatmap request: {exc}")
        return 2

    service = HeatmapService(settings=get_settings())
    result = service.build_heatmap(
        request.query,
        [_to_resource_input(resource) for resource in request.resources],
    )
    print(json.dumps(result.to_api_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capacity utilization and migration engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compress = subparsers.add_parser("compress", help="aggregate and merge an allocation envelope")
    compress.add_argument("input", type=Path)
    compress.add_argument("output", type=Path)

    heatmap = subparsers.add_parser("heatmap", help="compute utilization for a heatmap request")
    heatmap.add_argument("input", type=Path)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    with redirect_log_stream(sys.stderr):
        if args.command == "compress":
            return run_compress(args.input, args.output)
        return run_heatmap(args.input)


if __name__ == "__main__":
    raise SystemExit(main())
