"""JSON Schemas for projects, tasks and the inputs that build them.

Every record crossing the storage boundary, and every tool argument set,
is checked here before it is turned into a typed entity. Failures list
every violating field path, not just the first one.
"""

from datetime import datetime
from typing import Any

import jsonschema

from one_ring.errors import ValidationError

PROJECT_STATUSES = ["planning", "in_progress", "on_hold", "completed", "cancelled"]
TASK_STATUSES = ["todo", "in_progress", "blocked", "review", "done", "cancelled"]
PRIORITIES = ["low", "medium", "high", "critical"]

_STRING_LIST = {"type": "array", "items": {"type": "string"}}
_HOURS = {"type": "number", "minimum": 0}

REQUIREMENT = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "priority": {"enum": PRIORITIES},
        "acceptanceCriteria": _STRING_LIST,
        "tags": _STRING_LIST,
    },
    "required": ["id", "title", "description", "priority", "acceptanceCriteria"],
    "additionalProperties": False,
}

TIMELINE = {
    "type": "object",
    "properties": {
        "startDate": {"type": "string"},
        "endDate": {"type": "string"},
        "milestones": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "date": {"type": "string"},
                    "description": {"type": "string"},
                },
                "required": ["name", "date", "description"],
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

PRD = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "overview": {"type": "string"},
        "problemStatement": {"type": "string"},
        "goals": _STRING_LIST,
        "requirements": {"type": "array", "items": REQUIREMENT},
        "acceptanceCriteria": _STRING_LIST,
        "timeline": TIMELINE,
        "assumptions": _STRING_LIST,
        "constraints": _STRING_LIST,
        "risksAndMitigation": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "risk": {"type": "string"},
                    "mitigation": {"type": "string"},
                },
                "required": ["risk", "mitigation"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["title", "overview", "problemStatement", "goals", "requirements", "acceptanceCriteria", "timeline"],
    "additionalProperties": False,
}

PROJECT = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "prd": PRD,
        "status": {"enum": PROJECT_STATUSES},
        "tasks": _STRING_LIST,
        "tags": _STRING_LIST,
        "repository": {"type": "string"},
        "documentation": {"type": "string"},
        "created": {"type": "string"},
        "updated": {"type": "string"},
    },
    "required": ["id", "name", "description", "prd", "status", "created", "updated"],
    "additionalProperties": False,
}

TASK = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "projectId": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "status": {"enum": TASK_STATUSES},
        "priority": {"enum": PRIORITIES},
        "subtasks": _STRING_LIST,
        "dependencies": _STRING_LIST,
        "estimatedHours": _HOURS,
        "actualHours": _HOURS,
        "assignee": {"type": "string"},
        "tags": _STRING_LIST,
        "created": {"type": "string"},
        "updated": {"type": "string"},
        "dueDate": {"type": "string"},
        "notes": {"type": "string"},
    },
    "required": ["id", "projectId", "title", "description", "status", "priority", "created", "updated"],
    "additionalProperties": False,
}

CREATE_PROJECT = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "prd": PRD,
        "tags": _STRING_LIST,
        "repository": {"type": "string"},
        "documentation": {"type": "string"},
    },
    "required": ["name", "description", "prd"],
    "additionalProperties": False,
}

UPDATE_PROJECT = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "prd": PRD,
        "status": {"enum": PROJECT_STATUSES},
        "tags": _STRING_LIST,
        "repository": {"type": "string"},
        "documentation": {"type": "string"},
    },
    "additionalProperties": False,
}

CREATE_TASK = {
    "type": "object",
    "properties": {
        "projectId": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "priority": {"enum": PRIORITIES},
        "estimatedHours": _HOURS,
        "dueDate": {"type": "string"},
        "dependencies": _STRING_LIST,
        "tags": _STRING_LIST,
        "assignee": {"type": "string"},
    },
    "required": ["projectId", "title", "description", "priority"],
    "additionalProperties": False,
}

UPDATE_TASK = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "status": {"enum": TASK_STATUSES},
        "priority": {"enum": PRIORITIES},
        "estimatedHours": _HOURS,
        "actualHours": _HOURS,
        "assignee": {"type": "string"},
        "notes": {"type": "string"},
        "dueDate": {"type": "string"},
        "dependencies": _STRING_LIST,
        "tags": _STRING_LIST,
    },
    "additionalProperties": False,
}

SUBTASK = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "priority": {"enum": PRIORITIES},
        "estimatedHours": _HOURS,
    },
    "required": ["title", "description", "priority"],
    "additionalProperties": False,
}

PROJECT_FILTER = {
    "type": "object",
    "properties": {
        "status": {"enum": PROJECT_STATUSES},
        "tags": _STRING_LIST,
        "hasRepository": {"type": "boolean"},
    },
    "additionalProperties": False,
}

TASK_FILTER = {
    "type": "object",
    "properties": {
        "projectId": {"type": "string"},
        "status": {"enum": TASK_STATUSES},
        "priority": {"enum": PRIORITIES},
        "assignee": {"type": "string"},
        "tags": _STRING_LIST,
    },
    "additionalProperties": False,
}

SCHEMAS: dict[str, dict[str, Any]] = {
    "requirement": REQUIREMENT,
    "timeline": TIMELINE,
    "prd": PRD,
    "project": PROJECT,
    "task": TASK,
    "create_project": CREATE_PROJECT,
    "update_project": UPDATE_PROJECT,
    "create_task": CREATE_TASK,
    "update_task": UPDATE_TASK,
    "subtask": SUBTASK,
    "project_filter": PROJECT_FILTER,
    "task_filter": TASK_FILTER,
}

# Where a timeline can appear inside each schema's instances
_TIMELINE_PATHS: dict[str, tuple[str, ...]] = {
    "timeline": (),
    "prd": ("timeline",),
    "project": ("prd", "timeline"),
    "create_project": ("prd", "timeline"),
    "update_project": ("prd", "timeline"),
}


def _format_path(parts: Any) -> str:
    return ".".join(str(p) for p in parts) if parts else "(root)"


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _timeline_errors(name: str, data: Any) -> list[tuple[str, str]]:
    """Reject timelines that end before they start.

    Only applies when both dates parse as ISO-8601; free-text dates are left alone.
    """
    if name not in _TIMELINE_PATHS:
        return []

    timeline = data
    for key in _TIMELINE_PATHS[name]:
        if not isinstance(timeline, dict):
            return []
        timeline = timeline.get(key)
    if not isinstance(timeline, dict):
        return []

    start = _parse_date(timeline.get("startDate") or "")
    end = _parse_date(timeline.get("endDate") or "")
    if start is None or end is None:
        return []
    if end.date() < start.date():
        path = _format_path([*_TIMELINE_PATHS[name], "endDate"])
        return [(path, f"endDate {timeline['endDate']!r} is before startDate {timeline['startDate']!r}")]
    return []


def validate(name: str, data: Any) -> None:
    """Validate data against a named schema.

    Args:
        name: Schema name (e.g. "project", "task", "update_task")
        data: Candidate value, usually a dict decoded from YAML or tool arguments

    Raises:
        ValidationError: Listing every violating path with the expected shape
    """
    schema = SCHEMAS[name]
    validator = jsonschema.Draft7Validator(schema)

    errors = [
        (_format_path(error.absolute_path), error.message)
        for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    ]
    if not errors:
        errors = _timeline_errors(name, data)

    if errors:
        raise ValidationError(f"Invalid {name.replace('_', ' ')}", errors)
