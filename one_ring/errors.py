"""Error types raised by the task manager."""


class OneRingError(Exception):
    """Base class for all task manager errors."""


class ValidationError(OneRingError):
    """Data did not match the expected entity shape.

    Attributes:
        errors: List of (path, message) pairs, one per violation
    """

    def __init__(self, message: str, errors: list[tuple[str, str]] | None = None) -> None:
        self.errors = errors or []
        details = "; ".join(f"{path}: {msg}" for path, msg in self.errors)
        super().__init__(f"{message} ({details})" if details else message)


class NotFoundError(OneRingError):
    """A mandatory entity does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} not found: {entity_id}")


class StorageError(OneRingError):
    """The storage root could not be read or written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)
