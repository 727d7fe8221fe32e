from __future__ import annotations

import pytest

from capacity_engine.services.task_tree import build_tasks_by_project


def _row(task_id: str, project_id: str = "p1", parent_task_id: str | None = None, **extra) -> dict:
    return {
        "task_id": task_id,
        "task_name": f"Task {task_id}",
        "project_id": project_id,
        "parent_task_id": parent_task_id,
        **extra,
    }


def test_subtasks_nest_under_parents() -> None:
    tasks = build_tasks_by_project(
        [
            _row("t1"),
            _row("t2", parent_task_id="t1", total_minutes=90),
            _row("t4", project_id="p2"),
        ]
    )

    assert list(tasks) == ["p1", "p2"]
    parent = tasks["p1"][0]
    assert parent.task_id == "t1"
    assert [subtask.task_id for subtask in parent.subtasks] == ["t2"]
    assert parent.subtasks[0].logged_hours == pytest.approx(1.5)
    assert parent.subtasks[0].subtasks is None
    assert [task.task_id for task in tasks["p2"]] == ["t4"]


def test_orphan_subtasks_stay_top_level() -> None:
    tasks = build_tasks_by_project([_row("t1"), _row("t3", parent_task_id="missing")])

    assert [task.task_id for task in tasks["p1"]] == ["t1", "t3"]
    assert tasks["p1"][1].parent_task_id == "missing"


def test_child_listed_before_parent_is_still_nested() -> None:
    tasks = build_tasks_by_project([_row("t2", parent_task_id="t1"), _row("t1")])

    assert [task.task_id for task in tasks["p1"]] == ["t1"]
    assert tasks["p1"][0].subtasks[0].task_id == "t2"


def test_defaults_and_logged_hours() -> None:
    task = build_tasks_by_project([_row("t1", total_minutes=0)])["p1"][0]

    assert task.status_name == "Unknown"
    assert task.status_color == "#808080"
    assert task.priority_name == "None"
    assert task.logged_hours is None
    assert task.subtasks is None


def test_to_dict_omits_empty_subtasks() -> None:
    tasks = build_tasks_by_project([_row("t1"), _row("t2", parent_task_id="t1")])

    payload = tasks["p1"][0].to_dict()

    assert payload["subtasks"][0]["task_id"] == "t2"
    assert "subtasks" not in payload["subtasks"][0]


def test_empty_rows() -> None:
    assert build_tasks_by_project([]) == {}
