"""Local, file-backed project and task tracker."""

from one_ring.errors import NotFoundError, OneRingError, StorageError, ValidationError
from one_ring.manager import TaskManager
from one_ring.store import RecordStore

__all__ = ["NotFoundError", "OneRingError", "RecordStore", "StorageError", "TaskManager", "ValidationError"]
