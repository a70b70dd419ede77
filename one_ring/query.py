"""Filtering and ordering of project and task collections."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, TypeVar

from one_ring import schemas
from one_ring.models import Priority, Project, ProjectStatus, Task, TaskStatus

T = TypeVar("T", Project, Task)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def timestamp_key(value: str) -> tuple[int, datetime, str]:
    """Sort key ordering ISO timestamps by the instant they name.

    Naive values count as UTC. Values that do not parse sort after every
    parsed one, among themselves by their text.
    """
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return (1, _EPOCH, str(value))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (0, moment, "")


def _has_all_tags(entity_tags: list[str] | None, wanted: list[str] | None) -> bool:
    if not wanted:
        return True
    present = set(entity_tags or [])
    return all(tag in present for tag in wanted)


@dataclass
class ProjectFilter:
    """Project filter. Fields left as None match everything."""

    status: ProjectStatus | None = None
    tags: list[str] | None = None
    has_repository: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProjectFilter":
        data = data or {}
        schemas.validate("project_filter", data)
        return cls(
            status=ProjectStatus(data["status"]) if "status" in data else None,
            tags=data.get("tags"),
            has_repository=data.get("hasRepository"),
        )

    def matches(self, project: Project) -> bool:
        if self.status is not None and project.status != self.status:
            return False
        if self.has_repository is not None and bool(project.repository) != self.has_repository:
            return False
        return _has_all_tags(project.tags, self.tags)


@dataclass
class TaskFilter:
    """Task filter. Fields left as None match everything."""

    project_id: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    assignee: str | None = None
    tags: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TaskFilter":
        data = data or {}
        schemas.validate("task_filter", data)
        return cls(
            project_id=data.get("projectId"),
            status=TaskStatus(data["status"]) if "status" in data else None,
            priority=Priority(data["priority"]) if "priority" in data else None,
            assignee=data.get("assignee"),
            tags=data.get("tags"),
        )

    def matches(self, task: Task) -> bool:
        if self.project_id is not None and task.project_id != self.project_id:
            return False
        if self.status is not None and task.status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.assignee is not None and task.assignee != self.assignee:
            return False
        return _has_all_tags(task.tags, self.tags)


def sort_by_updated(entities: Iterable[T]) -> list[T]:
    """Most recently updated first. Stable, so ties keep storage order."""
    return sorted(entities, key=lambda e: timestamp_key(e.updated), reverse=True)


def filter_projects(projects: Iterable[Project], project_filter: ProjectFilter | None = None) -> list[Project]:
    """Return matching projects in display order."""
    project_filter = project_filter or ProjectFilter()
    return sort_by_updated(p for p in projects if project_filter.matches(p))


def filter_tasks(tasks: Iterable[Task], task_filter: TaskFilter | None = None) -> list[Task]:
    """Return matching tasks in display order."""
    task_filter = task_filter or TaskFilter()
    return sort_by_updated(t for t in tasks if task_filter.matches(t))
