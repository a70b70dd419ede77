"""Data models for projects and tasks."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from one_ring import schemas


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    REVIEW = "review"
    DONE = "done"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _put_optional(data: dict[str, Any], key: str, value: Any) -> None:
    """Add key only when the value is present, so absent stays absent on disk."""
    if value is not None:
        data[key] = value


@dataclass
class Requirement:
    """A single requirement inside a PRD. Its id is unique only within that PRD."""

    id: str
    title: str
    description: str
    priority: Priority
    acceptance_criteria: list[str] = field(default_factory=list)
    tags: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Requirement":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            priority=Priority(data["priority"]),
            acceptance_criteria=list(data["acceptanceCriteria"]),
            tags=list(data["tags"]) if "tags" in data else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "acceptanceCriteria": list(self.acceptance_criteria),
        }
        _put_optional(data, "tags", list(self.tags) if self.tags is not None else None)
        return data


@dataclass
class Milestone:
    name: str
    date: str
    description: str


@dataclass
class Timeline:
    """Project schedule. An empty timeline is valid."""

    start_date: str | None = None
    end_date: str | None = None
    milestones: list[Milestone] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Timeline":
        milestones = None
        if "milestones" in data:
            milestones = [Milestone(name=m["name"], date=m["date"], description=m["description"]) for m in data["milestones"]]
        return cls(start_date=data.get("startDate"), end_date=data.get("endDate"), milestones=milestones)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        _put_optional(data, "startDate", self.start_date)
        _put_optional(data, "endDate", self.end_date)
        if self.milestones is not None:
            data["milestones"] = [{"name": m.name, "date": m.date, "description": m.description} for m in self.milestones]
        return data


@dataclass
class Risk:
    risk: str
    mitigation: str


@dataclass
class PRD:
    """Product requirements document, embedded in and owned by its project."""

    title: str
    overview: str
    problem_statement: str
    goals: list[str] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)
    timeline: Timeline = field(default_factory=Timeline)
    assumptions: list[str] | None = None
    constraints: list[str] | None = None
    risks_and_mitigation: list[Risk] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PRD":
        """Validate and build a PRD.

        Raises:
            ValidationError: If data does not match the PRD schema
        """
        schemas.validate("prd", data)
        return cls._build(data)

    @classmethod
    def _build(cls, data: dict[str, Any]) -> "PRD":
        risks = None
        if "risksAndMitigation" in data:
            risks = [Risk(risk=r["risk"], mitigation=r["mitigation"]) for r in data["risksAndMitigation"]]
        return cls(
            title=data["title"],
            overview=data["overview"],
            problem_statement=data["problemStatement"],
            goals=list(data["goals"]),
            requirements=[Requirement.from_dict(r) for r in data["requirements"]],
            acceptance_criteria=list(data["acceptanceCriteria"]),
            timeline=Timeline.from_dict(data["timeline"]),
            assumptions=list(data["assumptions"]) if "assumptions" in data else None,
            constraints=list(data["constraints"]) if "constraints" in data else None,
            risks_and_mitigation=risks,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "overview": self.overview,
            "problemStatement": self.problem_statement,
            "goals": list(self.goals),
            "requirements": [r.to_dict() for r in self.requirements],
            "acceptanceCriteria": list(self.acceptance_criteria),
            "timeline": self.timeline.to_dict(),
        }
        _put_optional(data, "assumptions", list(self.assumptions) if self.assumptions is not None else None)
        _put_optional(data, "constraints", list(self.constraints) if self.constraints is not None else None)
        if self.risks_and_mitigation is not None:
            data["risksAndMitigation"] = [{"risk": r.risk, "mitigation": r.mitigation} for r in self.risks_and_mitigation]
        return data


@dataclass
class Project:
    """A project record.

    The tasks list is an advisory cache of task ids; Task.project_id is what
    actually ties a task to its project.
    """

    id: str
    name: str
    description: str
    prd: PRD
    created: str
    updated: str
    status: ProjectStatus = ProjectStatus.PLANNING
    tasks: list[str] | None = None
    tags: list[str] | None = None
    repository: str | None = None
    documentation: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Validate and build a project.

        Raises:
            ValidationError: If data does not match the project schema
        """
        schemas.validate("project", data)
        return cls(
            id=data["id"],
            name=data["name"],
            description=data["description"],
            prd=PRD._build(data["prd"]),
            created=data["created"],
            updated=data["updated"],
            status=ProjectStatus(data["status"]),
            tasks=list(data["tasks"]) if "tasks" in data else None,
            tags=list(data["tags"]) if "tags" in data else None,
            repository=data.get("repository"),
            documentation=data.get("documentation"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "prd": self.prd.to_dict(),
            "status": self.status.value,
        }
        _put_optional(data, "tasks", list(self.tasks) if self.tasks is not None else None)
        _put_optional(data, "tags", list(self.tags) if self.tags is not None else None)
        _put_optional(data, "repository", self.repository)
        _put_optional(data, "documentation", self.documentation)
        data["created"] = self.created
        data["updated"] = self.updated
        return data


@dataclass
class Task:
    """A task record, owned by exactly one project through project_id."""

    id: str
    project_id: str
    title: str
    description: str
    priority: Priority
    created: str
    updated: str
    status: TaskStatus = TaskStatus.TODO
    subtasks: list[str] | None = None
    dependencies: list[str] | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    assignee: str | None = None
    tags: list[str] | None = None
    due_date: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Validate and build a task.

        Raises:
            ValidationError: If data does not match the task schema
        """
        schemas.validate("task", data)
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            title=data["title"],
            description=data["description"],
            priority=Priority(data["priority"]),
            created=data["created"],
            updated=data["updated"],
            status=TaskStatus(data["status"]),
            subtasks=list(data["subtasks"]) if "subtasks" in data else None,
            dependencies=list(data["dependencies"]) if "dependencies" in data else None,
            estimated_hours=data.get("estimatedHours"),
            actual_hours=data.get("actualHours"),
            assignee=data.get("assignee"),
            tags=list(data["tags"]) if "tags" in data else None,
            due_date=data.get("dueDate"),
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
        }
        _put_optional(data, "subtasks", list(self.subtasks) if self.subtasks is not None else None)
        _put_optional(data, "dependencies", list(self.dependencies) if self.dependencies is not None else None)
        _put_optional(data, "estimatedHours", self.estimated_hours)
        _put_optional(data, "actualHours", self.actual_hours)
        _put_optional(data, "assignee", self.assignee)
        _put_optional(data, "tags", list(self.tags) if self.tags is not None else None)
        data["created"] = self.created
        data["updated"] = self.updated
        _put_optional(data, "dueDate", self.due_date)
        _put_optional(data, "notes", self.notes)
        return data


@dataclass
class ProjectSummary:
    id: str
    name: str
    description: str
    status: ProjectStatus
    task_count: int
    completed_tasks: int
    created: str
    updated: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "taskCount": self.task_count,
            "completedTasks": self.completed_tasks,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass
class TaskSummary:
    id: str
    project_id: str
    title: str
    status: TaskStatus
    priority: Priority
    created: str
    updated: str
    estimated_hours: float | None = None
    actual_hours: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value,
        }
        _put_optional(data, "estimatedHours", self.estimated_hours)
        _put_optional(data, "actualHours", self.actual_hours)
        data["created"] = self.created
        data["updated"] = self.updated
        return data


@dataclass
class Deadline:
    task_id: str
    title: str
    due_date: str

    def to_dict(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "title": self.title, "dueDate": self.due_date}


@dataclass
class ProjectStatusReport:
    """Rollup of a project's tasks, computed fresh on every request."""

    project: ProjectSummary
    tasks: list[TaskSummary]
    completion_percentage: float
    total_estimated_hours: float
    total_actual_hours: float
    upcoming_deadlines: list[Deadline]

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "tasks": [t.to_dict() for t in self.tasks],
            "completionPercentage": self.completion_percentage,
            "totalEstimatedHours": self.total_estimated_hours,
            "totalActualHours": self.total_actual_hours,
            "upcomingDeadlines": [d.to_dict() for d in self.upcoming_deadlines],
        }
