"""Project commands for the one-ring CLI."""

from pathlib import Path
from typing import Any

import yaml
from cyclopts import App

from one_ring.query import ProjectFilter

project_app = App(name="project", help="Manage projects")


def _split_tags(tags: str | None) -> list[str] | None:
    if tags is None:
        return None
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def _load_document(path: Path) -> Any:
    """Read a YAML (or JSON) document from disk."""
    with open(path, "r") as f:
        return yaml.safe_load(f)


@project_app.command
def create(
    name: str,
    description: str,
    prd: Path,
    tags: str | None = None,
    repository: str | None = None,
    documentation: str | None = None,
) -> None:
    """Create a new project.

    Args:
        name: Project name
        description: Project description
        prd: Path to a YAML or JSON file holding the PRD
        tags: Comma-separated tags
        repository: Repository URL
        documentation: Documentation URL
    """
    from one_ring.cli import get_manager

    manager = get_manager()
    project = manager.create_project(
        name=name,
        description=description,
        prd=_load_document(prd),
        tags=_split_tags(tags),
        repository=repository,
        documentation=documentation,
    )
    print(f"Created project {project.id}: {project.name}")


@project_app.command(name="list")
def list_projects(
    status: str | None = None,
    tags: str | None = None,
    has_repository: bool | None = None,
) -> None:
    """List projects, most recently updated first."""
    from one_ring.cli import get_manager

    filters: dict[str, Any] = {}
    if status:
        filters["status"] = status
    if tags:
        filters["tags"] = _split_tags(tags)
    if has_repository is not None:
        filters["hasRepository"] = has_repository

    summaries = get_manager().list_projects(ProjectFilter.from_dict(filters))

    print(f"Found {len(summaries)} project(s):\n")
    for summary in summaries:
        print(
            f"{summary.id}: {summary.name} [{summary.status.value}] "
            f"{summary.completed_tasks}/{summary.task_count} tasks done"
        )


@project_app.command
def show(project_id: str) -> None:
    """Show a project."""
    from one_ring.cli import get_manager

    project = get_manager().get_project(project_id)
    if project is None:
        print(f"Project {project_id} not found")
        return

    print(f"Project: {project.id}")
    print(f"Name: {project.name}")
    print(f"Description: {project.description}")
    print(f"Status: {project.status.value}")
    print(f"PRD: {project.prd.title}")
    if project.tags:
        print(f"Tags: {', '.join(project.tags)}")
    if project.repository:
        print(f"Repository: {project.repository}")
    if project.documentation:
        print(f"Documentation: {project.documentation}")
    print(f"Created: {project.created}")
    print(f"Updated: {project.updated}")


@project_app.command
def update(
    project_id: str,
    name: str | None = None,
    description: str | None = None,
    status: str | None = None,
    tags: str | None = None,
    repository: str | None = None,
    documentation: str | None = None,
    prd: Path | None = None,
) -> None:
    """Update a project. Options left out keep their current value."""
    from one_ring.cli import get_manager

    project = get_manager().update_project(
        project_id,
        name=name,
        description=description,
        status=status,
        tags=_split_tags(tags),
        repository=repository,
        documentation=documentation,
        prd=_load_document(prd) if prd is not None else None,
    )
    if project is None:
        print(f"Project {project_id} not found")
        return
    print(f"Updated project {project.id}: {project.name}")


@project_app.command
def delete(project_id: str) -> None:
    """Delete a project and all of its tasks."""
    from one_ring.cli import get_manager

    if get_manager().delete_project(project_id):
        print(f"Deleted project {project_id}")
    else:
        print(f"Project {project_id} not found")


@project_app.command
def status(project_id: str) -> None:
    """Show the status report of a project."""
    from one_ring.cli import get_manager

    report = get_manager().get_project_status(project_id)
    summary = report.project

    print(f"Project: {summary.id} {summary.name} ({summary.status.value})\n")
    print(f"Completion: {report.completion_percentage:.1f}% ({summary.completed_tasks}/{summary.task_count} tasks)")
    print(f"Estimated hours: {report.total_estimated_hours:g}")
    print(f"Actual hours: {report.total_actual_hours:g}")

    if report.upcoming_deadlines:
        print("\nUpcoming deadlines:")
        for deadline in report.upcoming_deadlines:
            print(f"  - {deadline.due_date} {deadline.task_id} {deadline.title}")
