class DomainError(Exception):
    """Base error for finance domain failures."""


class RecordNotFoundError(DomainError, LookupError):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id


class StorageIOError(DomainError):
    """Raised when a storage file cannot be read or written."""

    def __init__(self, path: str, message: str = "") -> None:
        super().__init__(f"Storage I/O failed for {path}: {message}".rstrip(": "))
        self.path = path


class RecordParseError(DomainError, ValueError):
    """A single persisted record could not be decoded."""
