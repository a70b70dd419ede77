"""Project and task operations on top of the record store."""

from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from one_ring import schemas
from one_ring.errors import NotFoundError, OneRingError, ValidationError
from one_ring.models import (
    PRD,
    Priority,
    Project,
    ProjectStatus,
    ProjectStatusReport,
    ProjectSummary,
    Task,
    TaskStatus,
    TaskSummary,
)
from one_ring.query import ProjectFilter, TaskFilter, filter_projects, filter_tasks
from one_ring.rollup import (
    build_status_report,
    build_subtask,
    dependency_path,
    find_dependency_cycles,
    summarize_project,
    summarize_task,
)
from one_ring.store import PROJECT, TASK, RecordStore

logger = structlog.get_logger()


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _changes(**fields: Any) -> dict[str, Any]:
    """Keep only the fields the caller actually supplied."""
    return {key: _plain(value) for key, value in fields.items() if value is not None}


class TaskManager:
    """Creates, updates, queries and rolls up projects and tasks.

    Updates use merge semantics: arguments left as None keep their stored value.
    Ids and creation timestamps are assigned here and never change afterwards.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # Projects

    def create_project(
        self,
        name: str,
        description: str,
        prd: dict[str, Any] | PRD,
        tags: list[str] | None = None,
        repository: str | None = None,
        documentation: str | None = None,
    ) -> Project:
        """Create a new project in the planning state.

        Raises:
            ValidationError: If any field, including the PRD, is malformed
        """
        prd_data = prd.to_dict() if isinstance(prd, PRD) else prd
        fields = _changes(
            name=name,
            description=description,
            prd=prd_data,
            tags=tags,
            repository=repository,
            documentation=documentation,
        )
        schemas.validate("create_project", fields)

        timestamp = self.store.now()
        project = Project(
            id=self.store.new_id(),
            name=name,
            description=description,
            prd=PRD.from_dict(prd_data),
            created=timestamp,
            updated=timestamp,
            status=ProjectStatus.PLANNING,
            tasks=[],
            tags=list(tags) if tags is not None else [],
            repository=repository,
            documentation=documentation,
        )
        self.store.put(PROJECT, project)
        logger.info("Project created", project_id=project.id, name=name)
        return project

    def get_project(self, project_id: str) -> Project | None:
        return self.store.get(PROJECT, project_id)

    def list_projects(self, project_filter: ProjectFilter | None = None) -> list[ProjectSummary]:
        """List project summaries, most recently updated first."""
        projects = filter_projects(self.store.list(PROJECT), project_filter)
        tasks = self.store.list(TASK)
        summaries = [summarize_project(p, tasks) for p in projects]
        logger.info("Listed projects", count=len(summaries))
        return summaries

    def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
        status: ProjectStatus | str | None = None,
        tags: list[str] | None = None,
        repository: str | None = None,
        documentation: str | None = None,
        prd: dict[str, Any] | PRD | None = None,
    ) -> Project | None:
        """Merge the given fields into a stored project.

        Returns:
            The updated project, or None if it does not exist

        Raises:
            ValidationError: If a supplied field is malformed
        """
        fields = _changes(
            name=name,
            description=description,
            status=status,
            tags=tags,
            repository=repository,
            documentation=documentation,
            prd=prd.to_dict() if isinstance(prd, PRD) else prd,
        )
        schemas.validate("update_project", fields)

        project = self.get_project(project_id)
        if project is None:
            logger.info("Project to update not found", project_id=project_id)
            return None

        if "name" in fields:
            project.name = fields["name"]
        if "description" in fields:
            project.description = fields["description"]
        if "status" in fields:
            project.status = ProjectStatus(fields["status"])
        if "tags" in fields:
            project.tags = list(fields["tags"])
        if "repository" in fields:
            project.repository = fields["repository"]
        if "documentation" in fields:
            project.documentation = fields["documentation"]
        if "prd" in fields:
            project.prd = PRD.from_dict(fields["prd"])
        project.updated = self.store.now()

        self.store.put(PROJECT, project)
        logger.info("Project updated", project_id=project_id, fields=sorted(fields))
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and every task that belongs to it.

        Task deletion is best-effort: a task that cannot be removed is logged and
        does not stop the project itself from being deleted.

        Returns:
            True if the project record existed
        """
        for task in filter_tasks(self.store.list(TASK), TaskFilter(project_id=project_id)):
            try:
                self.store.delete(TASK, task.id)
            except OneRingError as e:
                logger.warning("Failed to delete task of project", project_id=project_id, task_id=task.id, error=str(e))

        existed = self.store.delete(PROJECT, project_id)
        logger.info("Project deleted", project_id=project_id, existed=existed)
        return existed

    def get_project_status(self, project_id: str) -> ProjectStatusReport:
        """Build a status report from the project's live tasks.

        Raises:
            NotFoundError: If the project does not exist
        """
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError(PROJECT, project_id)

        tasks = filter_tasks(self.store.list(TASK), TaskFilter(project_id=project_id))
        report = build_status_report(project, tasks)
        logger.info(
            "Project status computed",
            project_id=project_id,
            task_count=report.project.task_count,
            completion=report.completion_percentage,
        )
        return report

    # Tasks

    def create_task(
        self,
        project_id: str,
        title: str,
        description: str,
        priority: Priority | str,
        estimated_hours: float | None = None,
        due_date: str | None = None,
        dependencies: list[str] | None = None,
        tags: list[str] | None = None,
        assignee: str | None = None,
    ) -> Task:
        """Create a new task in the todo state.

        Raises:
            ValidationError: If a field is malformed, the project does not exist,
                or a dependency refers to an unknown task
        """
        fields = _changes(
            projectId=project_id,
            title=title,
            description=description,
            priority=priority,
            estimatedHours=estimated_hours,
            dueDate=due_date,
            dependencies=dependencies,
            tags=tags,
            assignee=assignee,
        )
        schemas.validate("create_task", fields)

        if self.get_project(project_id) is None:
            raise ValidationError("Invalid create task", [("projectId", f"no project with id {project_id!r}")])
        self._check_dependencies_exist(dependencies or [])

        timestamp = self.store.now()
        task = Task(
            id=self.store.new_id(),
            project_id=project_id,
            title=title,
            description=description,
            priority=Priority(fields["priority"]),
            created=timestamp,
            updated=timestamp,
            status=TaskStatus.TODO,
            subtasks=[],
            dependencies=list(dependencies) if dependencies is not None else [],
            estimated_hours=estimated_hours,
            actual_hours=0,
            assignee=assignee,
            tags=list(tags) if tags is not None else [],
            due_date=due_date,
            notes="",
        )
        self.store.put(TASK, task)
        self._link_to_project(project_id, [task.id])
        logger.info("Task created", task_id=task.id, project_id=project_id)
        return task

    def get_task(self, task_id: str) -> Task | None:
        return self.store.get(TASK, task_id)

    def list_tasks(self, task_filter: TaskFilter | None = None) -> list[TaskSummary]:
        """List task summaries, most recently updated first."""
        tasks = filter_tasks(self.store.list(TASK), task_filter)
        logger.info("Listed tasks", count=len(tasks))
        return [summarize_task(t) for t in tasks]

    def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | str | None = None,
        priority: Priority | str | None = None,
        estimated_hours: float | None = None,
        actual_hours: float | None = None,
        assignee: str | None = None,
        notes: str | None = None,
        due_date: str | None = None,
        dependencies: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> Task | None:
        """Merge the given fields into a stored task.

        Returns:
            The updated task, or None if it does not exist

        Raises:
            ValidationError: If a field is malformed or new dependencies would
                refer to unknown tasks or form a cycle
        """
        fields = _changes(
            title=title,
            description=description,
            status=status,
            priority=priority,
            estimatedHours=estimated_hours,
            actualHours=actual_hours,
            assignee=assignee,
            notes=notes,
            dueDate=due_date,
            dependencies=dependencies,
            tags=tags,
        )
        schemas.validate("update_task", fields)

        task = self.get_task(task_id)
        if task is None:
            logger.info("Task to update not found", task_id=task_id)
            return None

        if "dependencies" in fields:
            self._check_dependencies_exist(fields["dependencies"])
            self._check_no_cycle(task_id, fields["dependencies"])
            task.dependencies = list(fields["dependencies"])
        if "title" in fields:
            task.title = fields["title"]
        if "description" in fields:
            task.description = fields["description"]
        if "status" in fields:
            task.status = TaskStatus(fields["status"])
        if "priority" in fields:
            task.priority = Priority(fields["priority"])
        if "estimatedHours" in fields:
            task.estimated_hours = fields["estimatedHours"]
        if "actualHours" in fields:
            task.actual_hours = fields["actualHours"]
        if "assignee" in fields:
            task.assignee = fields["assignee"]
        if "notes" in fields:
            task.notes = fields["notes"]
        if "dueDate" in fields:
            task.due_date = fields["dueDate"]
        if "tags" in fields:
            task.tags = list(fields["tags"])
        task.updated = self.store.now()

        self.store.put(TASK, task)
        logger.info("Task updated", task_id=task_id, fields=sorted(fields))
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a single task.

        Subtasks are left in place and other tasks keep any reference to the
        deleted id. The owning project's task list is pruned.

        Returns:
            True if the task record existed
        """
        try:
            task = self.get_task(task_id)
        except ValidationError as e:
            logger.warning("Deleting corrupt task record", task_id=task_id, error=str(e))
            task = None

        existed = self.store.delete(TASK, task_id)
        if existed and task is not None:
            self._unlink_from_project(task.project_id, task_id)
        logger.info("Task deleted", task_id=task_id, existed=existed)
        return existed

    def decompose_task(self, task_id: str, subtasks: list[dict[str, Any]]) -> list[Task]:
        """Break a task into subtasks.

        Each subtask depends on the parent and starts with the parent's assignee
        and tags. The new ids are appended to the parent's subtask list.

        Subtasks are written one by one; if a write fails partway through, the
        subtasks already written stay in place.

        Args:
            task_id: Parent task id
            subtasks: Specs with title, description, priority and optional estimatedHours

        Returns:
            The created subtasks, in input order

        Raises:
            NotFoundError: If the parent task does not exist
            ValidationError: If any subtask spec is malformed (nothing is written)
        """
        for index, spec in enumerate(subtasks):
            try:
                schemas.validate("subtask", spec)
            except ValidationError as e:
                errors = [(f"subtasks.{index}.{path}" if path != "(root)" else f"subtasks.{index}", msg) for path, msg in e.errors]
                raise ValidationError("Invalid subtask", errors) from None

        parent = self.get_task(task_id)
        if parent is None:
            raise NotFoundError(TASK, task_id)

        logger.info("Decomposing task", task_id=task_id, count=len(subtasks))
        created: list[Task] = []
        for spec in subtasks:
            subtask = build_subtask(parent, spec, self.store.new_id(), self.store.now())
            self.store.put(TASK, subtask)
            created.append(subtask)
            logger.debug("Subtask created", task_id=subtask.id, parent_id=task_id)

        new_ids = [t.id for t in created]
        parent.subtasks = (parent.subtasks or []) + new_ids
        parent.updated = self.store.now()
        self.store.put(TASK, parent)
        self._link_to_project(parent.project_id, new_ids)

        logger.info("Task decomposed", task_id=task_id, subtask_ids=new_ids)
        return created

    def find_cycles(self) -> list[list[str]]:
        """Report dependency cycles present in stored tasks."""
        cycles = find_dependency_cycles(self.store.list(TASK))
        logger.info("Checked dependency cycles", count=len(cycles))
        return cycles

    # Storage

    def backup(self) -> Path:
        return self.store.backup()

    # Helpers

    def _check_dependencies_exist(self, dependencies: list[str]) -> None:
        missing = [dep for dep in dependencies if self.get_task(dep) is None]
        if missing:
            raise ValidationError(
                "Unknown dependencies",
                [(f"dependencies.{dependencies.index(dep)}", f"no task with id {dep!r}") for dep in missing],
            )

    def _check_no_cycle(self, task_id: str, dependencies: list[str]) -> None:
        """Reject dependencies that would let task_id depend on itself."""
        graph = {t.id: list(t.dependencies or []) for t in self.store.list(TASK)}
        graph[task_id] = list(dependencies)
        for dep in dependencies:
            path = dependency_path(graph, dep, task_id)
            if path is not None:
                chain = " -> ".join([task_id] + path)
                raise ValidationError("Dependency cycle", [("dependencies", f"would create cycle {chain}")])

    def _link_to_project(self, project_id: str, task_ids: list[str]) -> None:
        """Append task ids to the project's advisory task list."""
        try:
            project = self.get_project(project_id)
            if project is None:
                return
            project.tasks = (project.tasks or []) + [t for t in task_ids if t not in (project.tasks or [])]
            project.updated = self.store.now()
            self.store.put(PROJECT, project)
        except OneRingError as e:
            logger.warning("Failed to update project task list", project_id=project_id, error=str(e))

    def _unlink_from_project(self, project_id: str, task_id: str) -> None:
        try:
            project = self.get_project(project_id)
            if project is None or task_id not in (project.tasks or []):
                return
            project.tasks = [t for t in project.tasks if t != task_id]
            project.updated = self.store.now()
            self.store.put(PROJECT, project)
        except OneRingError as e:
            logger.warning("Failed to update project task list", project_id=project_id, error=str(e))
