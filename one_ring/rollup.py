"""Derived views over tasks: summaries, status reports, subtasks and dependency cycles.

Nothing here touches storage. Callers pass in the live task collection, so
every figure is recomputed from current records.
"""

from typing import Any, Iterable

from one_ring.models import (
    Deadline,
    Priority,
    Project,
    ProjectStatusReport,
    ProjectSummary,
    Task,
    TaskStatus,
    TaskSummary,
)
from one_ring.query import timestamp_key

MAX_UPCOMING_DEADLINES = 5


def summarize_project(project: Project, tasks: Iterable[Task]) -> ProjectSummary:
    """Project summary with task counts taken from the given project's tasks."""
    own_tasks = [t for t in tasks if t.project_id == project.id]
    return ProjectSummary(
        id=project.id,
        name=project.name,
        description=project.description,
        status=project.status,
        task_count=len(own_tasks),
        completed_tasks=sum(1 for t in own_tasks if t.status == TaskStatus.DONE),
        created=project.created,
        updated=project.updated,
    )


def summarize_task(task: Task) -> TaskSummary:
    return TaskSummary(
        id=task.id,
        project_id=task.project_id,
        title=task.title,
        status=task.status,
        priority=task.priority,
        created=task.created,
        updated=task.updated,
        estimated_hours=task.estimated_hours,
        actual_hours=task.actual_hours,
    )


def build_status_report(project: Project, tasks: Iterable[Task]) -> ProjectStatusReport:
    """Compute the status report for a project.

    Args:
        project: The project being reported on
        tasks: Task collection; only tasks whose project_id matches are counted

    Returns:
        Report with completion percentage (0 when there are no tasks), hour totals
        and up to five nearest open deadlines
    """
    own_tasks = [t for t in tasks if t.project_id == project.id]
    summary = summarize_project(project, own_tasks)

    if summary.task_count:
        completion = summary.completed_tasks / summary.task_count * 100
    else:
        completion = 0

    pending = [t for t in own_tasks if t.due_date and t.status != TaskStatus.DONE]
    pending.sort(key=lambda t: timestamp_key(t.due_date))
    deadlines = [Deadline(task_id=t.id, title=t.title, due_date=t.due_date) for t in pending[:MAX_UPCOMING_DEADLINES]]

    return ProjectStatusReport(
        project=summary,
        tasks=[summarize_task(t) for t in own_tasks],
        completion_percentage=completion,
        total_estimated_hours=sum(t.estimated_hours or 0 for t in own_tasks),
        total_actual_hours=sum(t.actual_hours or 0 for t in own_tasks),
        upcoming_deadlines=deadlines,
    )


def build_subtask(parent: Task, spec: dict[str, Any], subtask_id: str, timestamp: str) -> Task:
    """Create a child task of parent from a validated subtask spec.

    Assignee and tags are copied from the parent as they are now; later changes
    to the parent do not propagate.
    """
    return Task(
        id=subtask_id,
        project_id=parent.project_id,
        title=spec["title"],
        description=spec["description"],
        priority=Priority(spec["priority"]),
        created=timestamp,
        updated=timestamp,
        status=TaskStatus.TODO,
        subtasks=[],
        dependencies=[parent.id],
        estimated_hours=spec.get("estimatedHours"),
        actual_hours=0,
        assignee=parent.assignee,
        tags=list(parent.tags) if parent.tags is not None else None,
        notes=f"Subtask of: {parent.title}",
    )


def dependency_path(graph: dict[str, list[str]], start: str, target: str) -> list[str] | None:
    """Find a chain of dependencies leading from start to target.

    Args:
        graph: Task id -> ids it depends on
        start: Where to begin walking
        target: Id to look for

    Returns:
        The ids visited from start to target inclusive, or None if unreachable
    """
    stack: list[tuple[str, list[str]]] = [(start, [start])]
    seen: set[str] = set()
    while stack:
        node, path = stack.pop()
        if node == target:
            return path
        if node in seen:
            continue
        seen.add(node)
        for dep in reversed(graph.get(node, [])):
            stack.append((dep, path + [dep]))
    return None


def find_dependency_cycles(tasks: Iterable[Task]) -> list[list[str]]:
    """Find dependency cycles among the given tasks.

    Walks the dependency graph depth-first; every edge that leads back into the
    current walk yields one cycle, rotated to start at its smallest id. Any graph
    with a cycle produces at least one entry. Dependencies on unknown ids are ignored.
    """
    graph = {t.id: list(t.dependencies or []) for t in tasks}
    cycles: list[list[str]] = []
    found: set[tuple[str, ...]] = set()
    done: set[str] = set()

    for root in sorted(graph):
        if root in done:
            continue
        path = [root]
        position = {root: 0}
        pending = [iter(graph[root])]
        while pending:
            for dep in pending[-1]:
                if dep in position:
                    cycle = path[position[dep]:]
                    pivot = cycle.index(min(cycle))
                    key = tuple(cycle[pivot:] + cycle[:pivot])
                    if key not in found:
                        found.add(key)
                        cycles.append(list(key))
                elif dep in graph and dep not in done:
                    position[dep] = len(path)
                    path.append(dep)
                    pending.append(iter(graph[dep]))
                    break
            else:
                # Every dependency of the top node has been explored
                node = path.pop()
                del position[node]
                done.add(node)
                pending.pop()

    return cycles
