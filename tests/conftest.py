"""Shared fixtures for one-ring tests."""

import itertools
import logging
from pathlib import Path
from typing import Any

import pytest
import structlog

from one_ring.manager import TaskManager
from one_ring.store import RecordStore


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """Keep log lines out of captured command output."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))


def _ticking_clock() -> Any:
    """Strictly increasing canonical timestamps, one second apart."""
    ticks = itertools.count()

    def now() -> str:
        n = next(ticks)
        return f"2025-01-01T{n // 3600:02d}:{n // 60 % 60:02d}:{n % 60:02d}.000000Z"

    return now


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    """Create a record store rooted in a temporary directory with a fake clock."""
    record_store = RecordStore(tmp_path / "data")
    record_store.now = _ticking_clock()  # type: ignore[method-assign]
    return record_store


@pytest.fixture
def manager(store: RecordStore) -> TaskManager:
    """Create a task manager on the temporary store."""
    return TaskManager(store)


@pytest.fixture
def sample_prd() -> dict[str, Any]:
    """Create a sample PRD document."""
    return {
        "title": "Alpha PRD",
        "overview": "Track work for Alpha",
        "problemStatement": "Work is scattered",
        "goals": ["Ship v1"],
        "requirements": [
            {
                "id": "R1",
                "title": "Persist tasks",
                "description": "Tasks survive restarts",
                "priority": "high",
                "acceptanceCriteria": ["Tasks are on disk"],
            }
        ],
        "acceptanceCriteria": ["All requirements met"],
        "timeline": {},
    }
