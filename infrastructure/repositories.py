from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from domain.errors import RecordNotFoundError, StorageIOError
from storage import FileStorage, path_lock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordRepository(ABC, Generic[T]):
    @abstractmethod
    def load_all(self) -> list[T]:
        """Load every stored record in file order."""
        pass

    @abstractmethod
    def get_by_id(self, record_id: str) -> T:
        """Return the record or raise RecordNotFoundError."""
        pass

    @abstractmethod
    def save(self, record: T) -> None:
        """Append a new record."""
        pass

    @abstractmethod
    def save_many(self, records: list[T]) -> None:
        """Append several records in one write."""
        pass

    @abstractmethod
    def replace(self, record: T) -> bool:
        """Swap the record sharing the same id. Returns False if absent."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Delete by id. Returns False if absent."""
        pass

    @abstractmethod
    def replace_all(self, records: list[T]) -> None:
        """Atomically replace the whole collection."""
        pass

    @abstractmethod
    def backup(self) -> bool:
        """Copy the collection file to its `.backup` sibling."""
        pass


class FileRecordRepository(RecordRepository[T]):
    """Whole-file repository keyed by record id.

    Every mutation loads the full collection into an id-ordered mapping,
    applies the change and writes the flat list back while holding the
    per-path lock, so concurrent callers in one process cannot interleave.
    """

    def __init__(self, storage: FileStorage[T], file_path: str) -> None:
        self._storage = storage
        self._file_path = file_path
        self._lock = path_lock(file_path)

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def backup_path(self) -> str:
        return f"{self._file_path}.backup"

    def load_all(self) -> list[T]:
        with self._lock:
            return self._storage.load_list(self._file_path)

    def get_by_id(self, record_id: str) -> T:
        for record in self.load_all():
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def save(self, record: T) -> None:
        with self._lock:
            arena = self._load_arena()
            if record.id in arena:
                logger.warning("Record id %s already stored, replacing", record.id)
            arena[record.id] = record
            self._save_arena(arena)

    def save_many(self, records: list[T]) -> None:
        with self._lock:
            arena = self._load_arena()
            for record in records:
                arena[record.id] = record
            self._save_arena(arena)

    def replace(self, record: T) -> bool:
        return self._mutate(record.id, lambda arena: arena.__setitem__(record.id, record))

    def delete(self, record_id: str) -> bool:
        return self._mutate(record_id, lambda arena: arena.pop(record_id))

    def replace_all(self, records: list[T]) -> None:
        with self._lock:
            self._save_arena({record.id: record for record in records})

    def backup(self) -> bool:
        return self._storage.backup(self._file_path, self.backup_path)

    def _mutate(self, record_id: str, change: Callable[[dict[str, T]], object]) -> bool:
        with self._lock:
            arena = self._load_arena()
            if record_id not in arena:
                return False
            change(arena)
            self._save_arena(arena)
        return True

    def _load_arena(self) -> dict[str, T]:
        arena: dict[str, T] = {}
        for record in self._storage.load_list(self._file_path):
            if record.id in arena:
                logger.warning("Duplicate record id %s in %s, keeping last", record.id, self._file_path)
            arena[record.id] = record
        return arena

    def _save_arena(self, arena: dict[str, T]) -> None:
        if not self._storage.save_list(list(arena.values()), self._file_path):
            raise StorageIOError(self._file_path, "save failed")
