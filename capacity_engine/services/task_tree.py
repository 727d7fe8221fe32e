"""Nest flat task rows into per-project task trees for allocation details."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from capacity_engine.domain.models import TaskDetail, read_field


def _task_detail(row: Any) -> TaskDetail:
    total_minutes = float(read_field(row, "total_minutes") or 0)
    return TaskDetail(
        task_id=str(read_field(row, "task_id")),
        task_name=str(read_field(row, "task_name")),
        status_name=read_field(row, "status_name") or "Unknown",
        status_color=read_field(row, "status_color") or "#808080",
        priority_name=read_field(row, "priority_name") or "None",
        priority_color=read_field(row, "priority_color") or "#808080",
        start_date=read_field(row, "start_date"),
        end_date=read_field(row, "end_date"),
        logged_hours=total_minutes / 60 if total_minutes > 0 else None,
        parent_task_id=read_field(row, "parent_task_id") or None,
        subtasks=[],
    )


def build_tasks_by_project(rows: Iterable[Any]) -> dict[str, list[TaskDetail]]:
    """Group tasks by project with subtasks nested under their parents.

    A subtask is nested only when its parent is part of ``rows``; otherwise it
    is listed at the top level of its project. Row order is preserved.
    """

    ordered = list(rows)
    details = {str(read_field(row, "task_id")): _task_detail(row) for row in ordered}

    nested_ids: set[str] = set()
    for row in ordered:
        task_id = str(read_field(row, "task_id"))
        parent_id = read_field(row, "parent_task_id")
        if parent_id and parent_id in details:
            details[parent_id].subtasks.append(details[task_id])
            nested_ids.add(task_id)

    tasks_by_project: dict[str, list[TaskDetail]] = defaultdict(list)
    for row in ordered:
        task_id = str(read_field(row, "task_id"))
        if task_id not in nested_ids:
            tasks_by_project[str(read_field(row, "project_id"))].append(details[task_id])

    for detail in details.values():
        if not detail.subtasks:
            detail.subtasks = None

    return dict(tasks_by_project)
