"""CLI for one-ring."""

import json
import sys
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from one_ring.config import get_config, resolve_storage_root
from one_ring.config_commands import config_app
from one_ring.errors import OneRingError
from one_ring.manager import TaskManager
from one_ring.project_commands import project_app
from one_ring.store import RecordStore
from one_ring.task_commands import task_app
from one_ring.tools import call_tool, list_tools

logger = structlog.get_logger()

app = App(
    help="One Ring - a local project and task tracker for agents",
)

app.command(project_app)
app.command(task_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level.

    Logs go to stderr so tool output on stdout stays machine-readable.
    """
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def get_manager() -> TaskManager:
    """Build a task manager on the configured storage root."""
    root, backups_dir = resolve_storage_root(get_config())
    return TaskManager(RecordStore(root, backups_dir=backups_dir))


@app.command
def call(tool: str, arguments: str = "{}") -> None:
    """Run a named tool with JSON arguments and print the JSON result.

    Args:
        tool: Tool name, see the "tools" command
        arguments: JSON object with the tool arguments
    """
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        print(f"Error: arguments are not valid JSON: {e}")
        sys.exit(1)

    result = call_tool(get_manager(), tool, parsed)
    print(result.text)
    if result.is_error:
        sys.exit(1)


@app.command
def tools() -> None:
    """List the available tools."""
    for name, description in list_tools().items():
        print(f"{name}: {description}")


@app.command
def backup() -> None:
    """Copy all records into a timestamped backup folder."""
    path = get_manager().backup()
    print(f"Backup written to {path}")


@app.command
def cycles() -> None:
    """Find and display dependency cycles among tasks."""
    found = get_manager().find_cycles()

    if not found:
        print("No cycles found")
        return

    print(f"Found {len(found)} cycle(s):\n")
    for i, cycle in enumerate(found, 1):
        print(f"{i}. {' -> '.join(cycle)} -> {cycle[0]}")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    try:
        app(tokens)
    except OneRingError as e:
        logger.error("Command failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def run() -> None:
    app.meta()


if __name__ == "__main__":
    run()
