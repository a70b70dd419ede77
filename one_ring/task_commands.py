"""Task commands for the one-ring CLI."""

from pathlib import Path
from typing import Any

import yaml
from cyclopts import App

from one_ring.query import TaskFilter

task_app = App(name="task", help="Manage tasks")


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@task_app.command
def create(
    project_id: str,
    title: str,
    description: str = "",
    priority: str = "medium",
    estimated_hours: float | None = None,
    due_date: str | None = None,
    dependencies: str | None = None,
    tags: str | None = None,
    assignee: str | None = None,
) -> None:
    """Create a new task.

    Args:
        project_id: Owning project ID
        title: Task title
        description: Task description
        priority: One of low, medium, high, critical
        estimated_hours: Estimated effort in hours
        due_date: ISO date string
        dependencies: Comma-separated IDs of tasks this task depends on
        tags: Comma-separated tags
        assignee: Person responsible
    """
    from one_ring.cli import get_manager

    task = get_manager().create_task(
        project_id=project_id,
        title=title,
        description=description,
        priority=priority,
        estimated_hours=estimated_hours,
        due_date=due_date,
        dependencies=_split(dependencies),
        tags=_split(tags),
        assignee=assignee,
    )
    print(f"Created task {task.id}: {task.title}")


@task_app.command(name="list")
def list_tasks(
    project_id: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    assignee: str | None = None,
    tags: str | None = None,
) -> None:
    """List tasks, most recently updated first."""
    from one_ring.cli import get_manager

    filters: dict[str, Any] = {}
    if project_id:
        filters["projectId"] = project_id
    if status:
        filters["status"] = status
    if priority:
        filters["priority"] = priority
    if assignee:
        filters["assignee"] = assignee
    if tags:
        filters["tags"] = _split(tags)

    summaries = get_manager().list_tasks(TaskFilter.from_dict(filters))

    print(f"Found {len(summaries)} task(s):\n")
    for summary in summaries:
        marker = "○" if summary.status.value in ("done", "cancelled") else "●"
        print(f"{marker} {summary.id}: {summary.title} [{summary.status.value}, {summary.priority.value}]")


@task_app.command
def show(task_id: str) -> None:
    """Show a task."""
    from one_ring.cli import get_manager

    task = get_manager().get_task(task_id)
    if task is None:
        print(f"Task {task_id} not found")
        return

    print(f"Task: {task.id}")
    print(f"Project: {task.project_id}")
    print(f"Title: {task.title}")
    print(f"Description: {task.description}")
    print(f"Status: {task.status.value}")
    print(f"Priority: {task.priority.value}")
    if task.assignee:
        print(f"Assignee: {task.assignee}")
    if task.tags:
        print(f"Tags: {', '.join(task.tags)}")
    if task.estimated_hours is not None:
        print(f"Estimated hours: {task.estimated_hours:g}")
    if task.actual_hours is not None:
        print(f"Actual hours: {task.actual_hours:g}")
    if task.due_date:
        print(f"Due: {task.due_date}")
    if task.dependencies:
        print(f"Depends on: {', '.join(task.dependencies)}")
    if task.subtasks:
        print(f"Subtasks: {', '.join(task.subtasks)}")
    if task.notes:
        print(f"Notes: {task.notes}")


@task_app.command
def update(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    estimated_hours: float | None = None,
    actual_hours: float | None = None,
    assignee: str | None = None,
    notes: str | None = None,
    due_date: str | None = None,
    dependencies: str | None = None,
    tags: str | None = None,
) -> None:
    """Update a task. Options left out keep their current value."""
    from one_ring.cli import get_manager

    task = get_manager().update_task(
        task_id,
        title=title,
        description=description,
        status=status,
        priority=priority,
        estimated_hours=estimated_hours,
        actual_hours=actual_hours,
        assignee=assignee,
        notes=notes,
        due_date=due_date,
        dependencies=_split(dependencies),
        tags=_split(tags),
    )
    if task is None:
        print(f"Task {task_id} not found")
        return
    print(f"Updated task {task.id}: {task.title}")


@task_app.command
def delete(*task_ids: str) -> None:
    """Delete one or more tasks."""
    from one_ring.cli import get_manager

    manager = get_manager()
    deleted = sum(1 for task_id in task_ids if manager.delete_task(task_id))
    print(f"Deleted {deleted} task(s)")


@task_app.command
def decompose(task_id: str, subtasks: Path) -> None:
    """Break a task into subtasks.

    Args:
        task_id: Parent task ID
        subtasks: Path to a YAML or JSON list of subtask specs
            (title, description, priority, optional estimatedHours)
    """
    from one_ring.cli import get_manager

    with open(subtasks, "r") as f:
        specs = yaml.safe_load(f) or []

    created = get_manager().decompose_task(task_id, specs)
    print(f"Created {len(created)} subtask(s) of {task_id}:\n")
    for task in created:
        print(f"  - {task.id}: {task.title}")
