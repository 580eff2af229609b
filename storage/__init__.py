from .base import DataStore, FileStorage, RecordCodec, path_lock
from .csv_storage import CsvStorage
from .json_storage import JsonStorage

BACKENDS: dict[str, type[FileStorage]] = {
    "csv": CsvStorage,
    "json": JsonStorage,
}


def create_storage(backend: str, codec: RecordCodec) -> FileStorage:
    """Build the configured backend around `codec`."""
    key = (backend or "").strip().lower()
    if key not in BACKENDS:
        raise ValueError(f"Unsupported storage backend: {backend}")
    return BACKENDS[key](codec)


__all__ = [
    "BACKENDS",
    "CsvStorage",
    "DataStore",
    "FileStorage",
    "JsonStorage",
    "RecordCodec",
    "create_storage",
    "path_lock",
]
