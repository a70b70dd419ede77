"""Tests for the command line interface."""

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from one_ring import cli, project_commands, task_commands
from one_ring.manager import TaskManager


@pytest.fixture(autouse=True)
def patched_manager(manager: TaskManager, monkeypatch: pytest.MonkeyPatch) -> TaskManager:
    """Route every command to the temporary task manager."""
    monkeypatch.setattr("one_ring.cli.get_manager", lambda: manager)
    return manager


@pytest.fixture
def prd_file(tmp_path: Path, sample_prd: dict[str, Any]) -> Path:
    path = tmp_path / "prd.yaml"
    path.write_text(yaml.safe_dump(sample_prd))
    return path


def test_project_create_and_list(prd_file: Path, manager: TaskManager, capsys: pytest.CaptureFixture[str]) -> None:
    """Test creating a project from a PRD file and listing it."""
    project_commands.create("Alpha", "First project", prd_file, tags="a, b")
    (project,) = manager.list_projects()
    assert manager.get_project(project.id).tags == ["a", "b"]

    project_commands.list_projects(tags="b")
    output = capsys.readouterr().out
    assert f"Created project {project.id}: Alpha" in output
    assert "Found 1 project(s)" in output
    assert "0/0 tasks done" in output


def test_project_show_missing(capsys: pytest.CaptureFixture[str]) -> None:
    """Test showing an unknown project."""
    project_commands.show("ghost")
    assert "Project ghost not found" in capsys.readouterr().out


def test_task_commands(
    tmp_path: Path, prd_file: Path, manager: TaskManager, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test creating, decomposing and reporting on tasks."""
    project = manager.create_project(name="Alpha", description="", prd=yaml.safe_load(prd_file.read_text()))
    task_commands.create(project.id, "T1", priority="high", estimated_hours=8, due_date="2025-01-15")
    (task,) = manager.list_tasks()

    specs = tmp_path / "subtasks.yaml"
    specs.write_text(yaml.safe_dump([{"title": "sub1", "description": "d", "priority": "medium"}]))
    task_commands.decompose(task.id, specs)
    task_commands.update(task.id, status="done", actual_hours=5)

    project_commands.status(project.id)
    output = capsys.readouterr().out
    assert "Created 1 subtask(s)" in output
    assert "Completion: 50.0% (1/2 tasks)" in output
    assert "Estimated hours: 8" in output
    assert "Actual hours: 5" in output

    task_commands.list_tasks(status="todo")
    assert "sub1" in capsys.readouterr().out


def test_call_prints_json(manager: TaskManager, sample_prd: dict[str, Any], capsys: pytest.CaptureFixture[str]) -> None:
    """Test running a tool with JSON arguments."""
    cli.call("create_project", json.dumps({"name": "Alpha", "description": "", "prd": sample_prd}))
    payload = json.loads(capsys.readouterr().out)
    assert payload["name"] == "Alpha"
    assert manager.get_project(payload["id"]) is not None


def test_call_reports_errors(capsys: pytest.CaptureFixture[str]) -> None:
    """Test that tool errors are printed and exit non-zero."""
    with pytest.raises(SystemExit) as exc_info:
        cli.call("get_task", "{}")
    assert exc_info.value.code == 1
    assert capsys.readouterr().out.startswith("Error: ")

    with pytest.raises(SystemExit):
        cli.call("get_task", "{not json")


def test_tools_and_cycles(capsys: pytest.CaptureFixture[str]) -> None:
    """Test the listing and maintenance commands."""
    cli.tools()
    cli.cycles()
    cli.backup()
    output = capsys.readouterr().out
    assert "decompose_task: Break a task into smaller subtasks" in output
    assert "No cycles found" in output
    assert "Backup written to" in output
