"""File-backed record store: one YAML file per project or task."""

import os
import shutil
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog
import yaml

from one_ring.errors import StorageError, ValidationError
from one_ring.models import Project, Task

logger = structlog.get_logger()

PROJECT = "project"
TASK = "task"

_KINDS: dict[str, tuple[str, type[Project] | type[Task]]] = {
    PROJECT: ("projects", Project),
    TASK: ("tasks", Task),
}

RECORD_SUFFIX = ".yaml"


def _kind_info(kind: str) -> tuple[str, type[Project] | type[Task]]:
    try:
        return _KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown record kind: {kind}") from None


class RecordStore:
    """Durable storage for project and task records.

    Records live under ``<root>/projects/<id>.yaml`` and ``<root>/tasks/<id>.yaml``.
    The root is fixed for the lifetime of the store.
    """

    def __init__(self, root: Path | str, backups_dir: Path | str | None = None) -> None:
        """Initialize the record store.

        Args:
            root: Data directory holding the kind subdirectories
            backups_dir: Where backup snapshots go (defaults to a "backups" sibling of root)

        Raises:
            StorageError: If the directories cannot be created
        """
        self.root = Path(root)
        self.backups_dir = Path(backups_dir) if backups_dir is not None else self.root.parent / "backups"

        logger.debug("Initializing record store", root=str(self.root))
        try:
            for dirname, _ in _KINDS.values():
                (self.root / dirname).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create storage root", root=str(self.root), error=str(e))
            raise StorageError("Storage root is not writable", str(self.root)) from e
        logger.info("Record store initialized", root=str(self.root))

    def _dir(self, kind: str) -> Path:
        dirname, _ = _kind_info(kind)
        return self.root / dirname

    def _path(self, kind: str, entity_id: str) -> Path:
        if not entity_id or "/" in entity_id or "\\" in entity_id or entity_id.startswith("."):
            raise ValidationError(f"Invalid {kind} id", [("id", f"not a usable record id: {entity_id!r}")])
        return self._dir(kind) / f"{entity_id}{RECORD_SUFFIX}"

    def _load(self, kind: str, path: Path) -> Project | Task:
        """Parse and validate a record file.

        Raises:
            ValidationError: If the file is not UTF-8 YAML or fails the schema
            StorageError: If the file cannot be read
        """
        _, model = _kind_info(kind)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise
        except UnicodeDecodeError as e:
            raise ValidationError(f"Corrupt {kind} record {path.name}", [("(root)", str(e))]) from e
        except OSError as e:
            logger.error("Failed to read record", path=str(path), error=str(e))
            raise StorageError("Failed to read record", str(path)) from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValidationError(f"Corrupt {kind} record {path.name}", [("(root)", str(e))]) from e

        return model.from_dict(data)

    def put(self, kind: str, entity: Project | Task) -> None:
        """Validate and persist an entity, replacing any record with the same id.

        The record is written to a temporary file in the same directory and then
        renamed over the target, so readers see either the old or the new record.

        Raises:
            ValidationError: If the entity does not match its schema
            StorageError: If the write fails
        """
        _, model = _kind_info(kind)
        if not isinstance(entity, model):
            raise ValidationError(f"Expected a {kind}", [("(root)", f"got {type(entity).__name__}")])

        data = entity.to_dict()
        model.from_dict(data)
        path = self._path(kind, entity.id)
        text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{entity.id}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error("Failed to write record", kind=kind, entity_id=entity.id, error=str(e))
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {kind} record", str(path)) from e

        logger.debug("Record written", kind=kind, entity_id=entity.id)

    def get(self, kind: str, entity_id: str) -> Project | Task | None:
        """Read an entity by id.

        Returns:
            The entity, or None if no record exists

        Raises:
            ValidationError: If the stored record is corrupt
        """
        path = self._path(kind, entity_id)
        try:
            entity = self._load(kind, path)
        except FileNotFoundError:
            logger.debug("Record not found", kind=kind, entity_id=entity_id)
            return None
        logger.debug("Record read", kind=kind, entity_id=entity_id)
        return entity

    def list(self, kind: str) -> list[Project | Task]:
        """Return every readable entity of a kind.

        Corrupt records are skipped with a warning instead of failing the listing.
        """
        directory = self._dir(kind)
        try:
            paths = sorted(directory.glob(f"*{RECORD_SUFFIX}"))
        except OSError as e:
            logger.error("Failed to list records", kind=kind, error=str(e))
            raise StorageError(f"Failed to list {kind} records", str(directory)) from e

        entities: list[Project | Task] = []
        for path in paths:
            if path.name.startswith("."):
                continue
            try:
                entities.append(self._load(kind, path))
            except FileNotFoundError:
                # Deleted between listing and reading
                continue
            except ValidationError as e:
                logger.warning("Skipping corrupt record", kind=kind, path=str(path), error=str(e))

        logger.debug("Listed records", kind=kind, count=len(entities))
        return entities

    def delete(self, kind: str, entity_id: str) -> bool:
        """Remove a record.

        Returns:
            True if the record existed
        """
        path = self._path(kind, entity_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Nothing to delete", kind=kind, entity_id=entity_id)
            return False
        except OSError as e:
            logger.error("Failed to delete record", kind=kind, entity_id=entity_id, error=str(e))
            raise StorageError(f"Failed to delete {kind} record", str(path)) from e

        logger.debug("Record deleted", kind=kind, entity_id=entity_id)
        return True

    def new_id(self) -> str:
        """Generate a new random identifier."""
        return str(uuid.uuid4())

    def now(self) -> str:
        """Current UTC time in the canonical timestamp format."""
        return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")

    def backup(self) -> Path:
        """Copy every record into a new timestamped snapshot directory.

        Returns:
            Path of the snapshot directory
        """
        stamp = self.now().replace(":", "-").replace(".", "-")
        target = self.backups_dir / stamp
        logger.info("Creating backup", target=str(target))

        try:
            for dirname, _ in _KINDS.values():
                source = self.root / dirname
                destination = target / dirname
                if source.is_dir():
                    shutil.copytree(source, destination, ignore=shutil.ignore_patterns(".*"))
                else:
                    destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Backup failed", target=str(target), error=str(e))
            raise StorageError("Failed to create backup", str(target)) from e

        logger.info("Backup created", target=str(target))
        return target
