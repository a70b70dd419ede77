"""Named tool operations for programmatic callers.

Each tool takes a JSON-style argument dict (camelCase keys, as stored in
records) and returns a JSON-ready payload. Failures the caller can act on are
returned as labeled error results instead of being raised.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from one_ring import schemas
from one_ring.errors import NotFoundError, OneRingError, ValidationError
from one_ring.manager import TaskManager
from one_ring.query import ProjectFilter, TaskFilter

logger = structlog.get_logger()


@dataclass
class ToolResult:
    """Outcome of a tool call: a payload, or an error message."""

    payload: Any = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def text(self) -> str:
        if self.error is not None:
            return f"Error: {self.error}"
        return json.dumps(self.payload, indent=2)


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _kwargs(arguments: dict[str, Any]) -> dict[str, Any]:
    return {_snake(key): value for key, value in arguments.items()}


def _pop_id(arguments: dict[str, Any], key: str = "id") -> str:
    """Split the target id out of the arguments."""
    value = arguments.pop(key, None)
    if not isinstance(value, str) or not value:
        raise ValidationError("Missing id", [(key, "a non-empty string is required")])
    return value


def _to_dict(entity: Any) -> Any:
    return entity.to_dict() if entity is not None else None


def _create_project(manager: TaskManager, args: dict[str, Any]) -> Any:
    schemas.validate("create_project", args)
    return manager.create_project(**_kwargs(args)).to_dict()


def _list_projects(manager: TaskManager, args: dict[str, Any]) -> Any:
    return [s.to_dict() for s in manager.list_projects(ProjectFilter.from_dict(args))]


def _get_project(manager: TaskManager, args: dict[str, Any]) -> Any:
    return _to_dict(manager.get_project(_pop_id(args)))


def _update_project(manager: TaskManager, args: dict[str, Any]) -> Any:
    project_id = _pop_id(args)
    schemas.validate("update_project", args)
    return _to_dict(manager.update_project(project_id, **_kwargs(args)))


def _delete_project(manager: TaskManager, args: dict[str, Any]) -> Any:
    return {"deleted": manager.delete_project(_pop_id(args))}


def _get_project_status(manager: TaskManager, args: dict[str, Any]) -> Any:
    try:
        return manager.get_project_status(_pop_id(args)).to_dict()
    except NotFoundError:
        return None


def _create_task(manager: TaskManager, args: dict[str, Any]) -> Any:
    schemas.validate("create_task", args)
    return manager.create_task(**_kwargs(args)).to_dict()


def _list_tasks(manager: TaskManager, args: dict[str, Any]) -> Any:
    return [s.to_dict() for s in manager.list_tasks(TaskFilter.from_dict(args))]


def _get_task(manager: TaskManager, args: dict[str, Any]) -> Any:
    return _to_dict(manager.get_task(_pop_id(args)))


def _update_task(manager: TaskManager, args: dict[str, Any]) -> Any:
    task_id = _pop_id(args)
    schemas.validate("update_task", args)
    return _to_dict(manager.update_task(task_id, **_kwargs(args)))


def _delete_task(manager: TaskManager, args: dict[str, Any]) -> Any:
    return {"deleted": manager.delete_task(_pop_id(args))}


def _decompose_task(manager: TaskManager, args: dict[str, Any]) -> Any:
    task_id = _pop_id(args, "taskId")
    subtasks = args.pop("subtasks", None)
    if not isinstance(subtasks, list):
        raise ValidationError("Invalid decompose task", [("subtasks", "an array of subtask specs is required")])
    if args:
        raise ValidationError("Invalid decompose task", [(key, "unexpected argument") for key in sorted(args)])
    return [t.to_dict() for t in manager.decompose_task(task_id, subtasks)]


def _backup(manager: TaskManager, args: dict[str, Any]) -> Any:
    return {"path": str(manager.backup())}


def _find_cycles(manager: TaskManager, args: dict[str, Any]) -> Any:
    return {"cycles": manager.find_cycles()}


TOOLS: dict[str, tuple[str, Callable[[TaskManager, dict[str, Any]], Any]]] = {
    "create_project": ("Create a new project with PRD", _create_project),
    "list_projects": ("List all projects with optional filtering", _list_projects),
    "get_project": ("Get detailed project information", _get_project),
    "update_project": ("Update project information", _update_project),
    "delete_project": ("Delete a project and all of its tasks", _delete_project),
    "get_project_status": ("Get comprehensive project status report", _get_project_status),
    "create_task": ("Create a new task", _create_task),
    "list_tasks": ("List tasks with optional filtering", _list_tasks),
    "get_task": ("Get detailed task information", _get_task),
    "update_task": ("Update task information", _update_task),
    "delete_task": ("Delete a single task", _delete_task),
    "decompose_task": ("Break a task into smaller subtasks", _decompose_task),
    "backup": ("Copy all records into a timestamped backup folder", _backup),
    "find_cycles": ("Find dependency cycles among tasks", _find_cycles),
}


def list_tools() -> dict[str, str]:
    """Tool names mapped to their descriptions."""
    return {name: description for name, (description, _) in TOOLS.items()}


def call_tool(manager: TaskManager, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
    """Run a named tool.

    Args:
        manager: Task manager to operate on
        name: Tool name, one of TOOLS
        arguments: Tool arguments with camelCase keys

    Returns:
        ToolResult with the JSON-ready payload, or the error message if the
        call failed validation, referenced a missing entity, or hit storage errors
    """
    if name not in TOOLS:
        logger.warning("Unknown tool", tool=name)
        return ToolResult(error=f"Unknown tool: {name}")

    if arguments is not None and not isinstance(arguments, dict):
        return ToolResult(error="Tool arguments must be an object")

    _, handler = TOOLS[name]
    logger.debug("Calling tool", tool=name)
    try:
        payload = handler(manager, dict(arguments or {}))
    except OneRingError as e:
        logger.warning("Tool call failed", tool=name, error=str(e))
        return ToolResult(error=str(e))

    logger.info("Tool call completed", tool=name)
    return ToolResult(payload=payload)
