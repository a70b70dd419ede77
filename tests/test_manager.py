"""Tests for project and task operations."""

from typing import Any

import pytest

from one_ring.errors import NotFoundError, StorageError, ValidationError
from one_ring.manager import TaskManager
from one_ring.models import Project, ProjectStatus, Task, TaskStatus
from one_ring.query import ProjectFilter, TaskFilter
from one_ring.store import TASK


@pytest.fixture
def project(manager: TaskManager, sample_prd: dict[str, Any]) -> Project:
    return manager.create_project(name="Alpha", description="First project", prd=sample_prd)


@pytest.fixture
def task(manager: TaskManager, project: Project) -> Task:
    return manager.create_task(
        project_id=project.id,
        title="T1",
        description="Top-level task",
        priority="high",
        estimated_hours=8,
        due_date="2025-01-15",
    )


def test_create_project_then_get(manager: TaskManager, sample_prd: dict[str, Any]) -> None:
    """Test that a created project reads back identical with store-set timestamps."""
    created = manager.create_project(
        name="Alpha", description="First project", prd=sample_prd, tags=["a"], repository="git@example.com:a.git"
    )
    assert created.status == ProjectStatus.PLANNING
    assert created.created == created.updated
    assert created.tasks == []
    assert manager.get_project(created.id) == created


def test_create_project_rejects_bad_prd(manager: TaskManager, sample_prd: dict[str, Any]) -> None:
    """Test that an invalid PRD is rejected with its path."""
    del sample_prd["problemStatement"]
    with pytest.raises(ValidationError) as exc_info:
        manager.create_project(name="Alpha", description="", prd=sample_prd)
    assert exc_info.value.errors[0][0] == "prd"


def test_get_missing_entities(manager: TaskManager) -> None:
    """Test that reads of unknown ids return None."""
    assert manager.get_project("nope") is None
    assert manager.get_task("nope") is None
    assert manager.update_project("nope", name="x") is None
    assert manager.update_task("nope", title="x") is None


def test_update_project_merges_fields(manager: TaskManager, project: Project) -> None:
    """Test that unspecified fields keep their value and updated moves forward."""
    updated = manager.update_project(project.id, status="in_progress", tags=["x", "y"])

    assert updated.status == ProjectStatus.IN_PROGRESS
    assert updated.tags == ["x", "y"]
    assert updated.name == "Alpha"
    assert updated.id == project.id
    assert updated.created == project.created
    assert updated.updated > project.updated
    assert manager.get_project(project.id) == updated


def test_update_without_changes_refreshes_timestamp(manager: TaskManager, project: Project) -> None:
    """Test that an empty update still touches the record."""
    updated = manager.update_project(project.id)
    assert updated.updated > project.updated
    assert updated.name == project.name


def test_update_project_rejects_bad_status(manager: TaskManager, project: Project) -> None:
    """Test that enum fields are validated on update."""
    with pytest.raises(ValidationError):
        manager.update_project(project.id, status="archived")
    assert manager.get_project(project.id).status == ProjectStatus.PLANNING


def test_create_task_defaults(manager: TaskManager, project: Project, task: Task) -> None:
    """Test the initial state of a new task and the project's task list."""
    assert task.status == TaskStatus.TODO
    assert task.subtasks == []
    assert task.dependencies == []
    assert task.actual_hours == 0
    assert task.notes == ""
    assert manager.get_task(task.id) == task
    assert manager.get_project(project.id).tasks == [task.id]


def test_create_task_requires_existing_project(manager: TaskManager) -> None:
    """Test that tasks cannot point at a missing project."""
    with pytest.raises(ValidationError) as exc_info:
        manager.create_task(project_id="ghost", title="T", description="", priority="low")
    assert exc_info.value.errors[0][0] == "projectId"


def test_create_task_rejects_unknown_dependency(manager: TaskManager, project: Project) -> None:
    """Test that dependencies must name existing tasks."""
    with pytest.raises(ValidationError):
        manager.create_task(project_id=project.id, title="T", description="", priority="low", dependencies=["ghost"])


def test_create_task_rejects_bad_priority(manager: TaskManager, project: Project) -> None:
    """Test that priority must be a known value."""
    with pytest.raises(ValidationError):
        manager.create_task(project_id=project.id, title="T", description="", priority="urgent")


def test_decompose_task(manager: TaskManager, task: Task) -> None:
    """Test decomposing a task into one subtask."""
    subtasks = manager.decompose_task(task.id, [{"title": "sub1", "description": "d", "priority": "medium"}])

    assert len(subtasks) == 1
    assert subtasks[0].dependencies == [task.id]
    assert subtasks[0].status == TaskStatus.TODO
    assert subtasks[0].project_id == task.project_id
    assert manager.get_task(task.id).subtasks == [subtasks[0].id]
    assert manager.get_task(subtasks[0].id) == subtasks[0]


def test_decompose_appends_children(manager: TaskManager, task: Task) -> None:
    """Test that repeated decomposition accumulates children in call order."""
    first = manager.decompose_task(
        task.id,
        [
            {"title": "a", "description": "", "priority": "low"},
            {"title": "b", "description": "", "priority": "low"},
        ],
    )
    second = manager.decompose_task(task.id, [{"title": "c", "description": "", "priority": "high"}])

    parent = manager.get_task(task.id)
    assert parent.subtasks == [t.id for t in first] + [t.id for t in second]
    assert [t.title for t in first] == ["a", "b"]


def test_decompose_snapshots_parent_fields(manager: TaskManager, project: Project) -> None:
    """Test that later parent changes do not reach existing subtasks."""
    parent = manager.create_task(
        project_id=project.id, title="P", description="", priority="low", assignee="alice", tags=["api"]
    )
    (child,) = manager.decompose_task(parent.id, [{"title": "c", "description": "", "priority": "low"}])
    manager.update_task(parent.id, assignee="bob", tags=["web"])

    stored = manager.get_task(child.id)
    assert stored.assignee == "alice"
    assert stored.tags == ["api"]
    assert stored.notes == "Subtask of: P"


def test_decompose_missing_parent(manager: TaskManager) -> None:
    """Test that decomposing an unknown task fails."""
    with pytest.raises(NotFoundError):
        manager.decompose_task("ghost", [{"title": "c", "description": "", "priority": "low"}])


def test_decompose_invalid_spec_writes_nothing(manager: TaskManager, task: Task) -> None:
    """Test that a malformed spec is rejected before any subtask is written."""
    specs = [
        {"title": "ok", "description": "", "priority": "low"},
        {"title": "bad", "description": "", "priority": "whenever"},
    ]
    with pytest.raises(ValidationError) as exc_info:
        manager.decompose_task(task.id, specs)
    assert exc_info.value.errors[0][0] == "subtasks.1.priority"
    assert len(manager.list_tasks()) == 1


def test_decompose_partial_failure_keeps_written_subtasks(
    manager: TaskManager, task: Task, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that subtasks written before a storage failure stay in place."""
    original_put = manager.store.put
    calls = {"count": 0}

    def flaky_put(kind: str, entity: Any) -> None:
        if kind == TASK and entity.id != task.id:
            calls["count"] += 1
            if calls["count"] == 2:
                raise StorageError("disk full")
        original_put(kind, entity)

    monkeypatch.setattr(manager.store, "put", flaky_put)
    specs = [{"title": f"s{i}", "description": "", "priority": "low"} for i in range(3)]
    with pytest.raises(StorageError):
        manager.decompose_task(task.id, specs)

    titles = {t.title for t in manager.list_tasks()}
    assert titles == {"T1", "s0"}
    assert manager.get_task(task.id).subtasks == []


def test_project_status_empty(manager: TaskManager, project: Project) -> None:
    """Test the status of a project without tasks."""
    report = manager.get_project_status(project.id)
    assert report.completion_percentage == 0
    assert report.total_estimated_hours == 0
    assert report.upcoming_deadlines == []


def test_project_status_after_completion(manager: TaskManager, project: Project, task: Task) -> None:
    """Test that finishing a task shows up in the status report."""
    before = manager.get_project_status(project.id)
    manager.update_task(task.id, status="done", actual_hours=5)
    after = manager.get_project_status(project.id)

    assert after.project.completed_tasks == before.project.completed_tasks + 1
    assert after.total_actual_hours == 5
    assert after.completion_percentage == 100
    assert after.upcoming_deadlines == []
    assert [d.task_id for d in before.upcoming_deadlines] == [task.id]


def test_project_status_uses_live_tasks(manager: TaskManager, project: Project, task: Task) -> None:
    """Test that the report ignores the project's cached task list."""
    stored = manager.get_project(project.id)
    stored.tasks = []
    manager.store.put("project", stored)

    assert manager.get_project_status(project.id).project.task_count == 1


def test_project_status_missing(manager: TaskManager) -> None:
    """Test that a status report needs an existing project."""
    with pytest.raises(NotFoundError):
        manager.get_project_status("ghost")


def test_list_projects_with_counts(manager: TaskManager, sample_prd: dict[str, Any]) -> None:
    """Test that summaries carry live task counts and honour filters."""
    alpha = manager.create_project(name="Alpha", description="", prd=sample_prd, tags=["a", "b"])
    beta = manager.create_project(name="Beta", description="", prd=sample_prd, tags=["b"])
    done = manager.create_task(project_id=alpha.id, title="x", description="", priority="low")
    manager.create_task(project_id=alpha.id, title="y", description="", priority="low")
    manager.update_task(done.id, status="done")

    summaries = manager.list_projects()
    by_id = {s.id: s for s in summaries}
    assert (by_id[alpha.id].task_count, by_id[alpha.id].completed_tasks) == (2, 1)
    assert by_id[beta.id].task_count == 0
    assert all(summaries[i].updated >= summaries[i + 1].updated for i in range(len(summaries) - 1))

    assert [s.id for s in manager.list_projects(ProjectFilter(tags=["b", "a"]))] == [alpha.id]


def test_list_tasks_newest_first(manager: TaskManager, project: Project) -> None:
    """Test default task ordering and filtering."""
    first = manager.create_task(project_id=project.id, title="first", description="", priority="low")
    second = manager.create_task(project_id=project.id, title="second", description="", priority="high")
    manager.update_task(first.id, notes="touched")

    assert [t.id for t in manager.list_tasks()] == [first.id, second.id]
    assert [t.id for t in manager.list_tasks(TaskFilter(priority="high"))] == [second.id]


def test_update_task_dependencies(manager: TaskManager, project: Project) -> None:
    """Test that valid dependencies are stored and cycles are rejected."""
    a = manager.create_task(project_id=project.id, title="a", description="", priority="low")
    b = manager.create_task(project_id=project.id, title="b", description="", priority="low", dependencies=[a.id])

    with pytest.raises(ValidationError):
        manager.update_task(a.id, dependencies=[b.id])
    with pytest.raises(ValidationError):
        manager.update_task(a.id, dependencies=[a.id])
    with pytest.raises(ValidationError):
        manager.update_task(a.id, dependencies=["ghost"])

    c = manager.create_task(project_id=project.id, title="c", description="", priority="low")
    updated = manager.update_task(a.id, dependencies=[c.id])
    assert updated.dependencies == [c.id]
    assert manager.find_cycles() == []


def test_update_task_merges_fields(manager: TaskManager, task: Task) -> None:
    """Test that task updates only touch supplied fields."""
    updated = manager.update_task(task.id, status="blocked", assignee="carol")
    assert updated.status == TaskStatus.BLOCKED
    assert updated.assignee == "carol"
    assert updated.estimated_hours == 8
    assert updated.due_date == "2025-01-15"
    assert updated.created == task.created
    assert updated.updated > task.updated


def test_delete_project_cascades(manager: TaskManager, project: Project, task: Task, sample_prd: dict[str, Any]) -> None:
    """Test that deleting a project removes its tasks and nothing else."""
    other = manager.create_project(name="Other", description="", prd=sample_prd)
    kept = manager.create_task(project_id=other.id, title="keep", description="", priority="low")
    manager.decompose_task(task.id, [{"title": "sub", "description": "", "priority": "low"}])

    assert manager.delete_project(project.id) is True

    assert manager.get_project(project.id) is None
    assert manager.list_tasks(TaskFilter(project_id=project.id)) == []
    assert [t.id for t in manager.list_tasks()] == [kept.id]
    assert manager.delete_project(project.id) is False


def test_delete_project_survives_task_failure(
    manager: TaskManager, project: Project, task: Task, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that a task that cannot be removed does not block project deletion."""
    original_delete = manager.store.delete

    def failing_delete(kind: str, entity_id: str) -> bool:
        if kind == TASK:
            raise StorageError("permission denied")
        return original_delete(kind, entity_id)

    monkeypatch.setattr(manager.store, "delete", failing_delete)
    assert manager.delete_project(project.id) is True
    assert manager.get_project(project.id) is None


def test_delete_task_leaves_references(manager: TaskManager, project: Project, task: Task) -> None:
    """Test that deleting a task does not cascade or rewrite other tasks."""
    (child,) = manager.decompose_task(task.id, [{"title": "sub", "description": "", "priority": "low"}])

    assert manager.delete_task(child.id) is True
    assert manager.delete_task(child.id) is False

    assert manager.get_task(task.id).subtasks == [child.id]
    assert child.id not in manager.get_project(project.id).tasks

    assert manager.delete_task(task.id) is True
    assert manager.get_project(project.id).tasks == []


def test_find_cycles_in_hand_edited_records(manager: TaskManager, project: Project) -> None:
    """Test that cycles written outside the manager are reported."""
    a = manager.create_task(project_id=project.id, title="a", description="", priority="low")
    b = manager.create_task(project_id=project.id, title="b", description="", priority="low", dependencies=[a.id])
    a.dependencies = [b.id]
    manager.store.put(TASK, a)

    assert manager.find_cycles() == [sorted([a.id, b.id])]


def test_backup(manager: TaskManager, task: Task) -> None:
    """Test that a backup contains the current records."""
    path = manager.backup()
    assert (path / "tasks" / f"{task.id}.yaml").exists()
    assert (path / "projects" / f"{task.project_id}.yaml").exists()
