from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Callable
from typing import IO, Any, Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_path_locks: dict[str, threading.RLock] = {}
_path_locks_guard = threading.Lock()


def path_lock(path: str) -> threading.RLock:
    """Process-wide re-entrant lock shared by everything touching `path`."""
    abs_path = os.path.abspath(path)
    with _path_locks_guard:
        if abs_path not in _path_locks:
            _path_locks[abs_path] = threading.RLock()
        return _path_locks[abs_path]


class RecordCodec(Protocol[T]):
    """Field mapping for one record kind, shared by every backend."""

    fields: tuple[str, ...]

    def to_dict(self, item: T) -> dict[str, Any]:
        ...

    def from_dict(self, data: dict[str, Any]) -> T:
        ...


class DataStore(Protocol[T]):
    """Low-level storage contract for persistence backends.

    Failures never raise: writes report False, reads report an empty result.
    """

    def save_list(self, items: list[T], path: str) -> bool:
        ...

    def load_list(self, path: str) -> list[T]:
        ...

    def save_item(self, item: T, path: str) -> bool:
        ...

    def load_item(self, path: str) -> T | None:
        ...

    def append_item(self, item: T, path: str) -> bool:
        ...

    def exists(self, path: str) -> bool:
        ...

    def backup(self, path: str, backup_path: str) -> bool:
        ...


def write_atomically(path: str, writer: Callable[[IO[str]], None], *, newline: str | None = None) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    suffix = os.path.splitext(path)[1] or ".tmp"
    fd, tmp_path = tempfile.mkstemp(prefix=".records_", suffix=suffix, dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline=newline) as f:
            writer(f)
        os.replace(tmp_path, path)
    finally:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)


class FileStorage(Generic[T]):
    """Shared plumbing for file backends; format details live in subclasses."""

    format_name = "file"

    def __init__(self, codec: RecordCodec[T]) -> None:
        self._codec = codec

    @property
    def codec(self) -> RecordCodec[T]:
        return self._codec

    def save_list(self, items: list[T], path: str) -> bool:
        raise NotImplementedError

    def load_list(self, path: str) -> list[T]:
        raise NotImplementedError

    def append_item(self, item: T, path: str) -> bool:
        with path_lock(path):
            items = self.load_list(path)
            items.append(item)
            return self.save_list(items, path)

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def backup(self, path: str, backup_path: str) -> bool:
        if not self.exists(path):
            logger.warning("Backup skipped, source file missing: %s", path)
            return False
        with path_lock(path):
            try:
                backup_dir = os.path.dirname(os.path.abspath(backup_path))
                os.makedirs(backup_dir, exist_ok=True)
                shutil.copyfile(path, backup_path)
            except OSError:
                logger.exception("Failed to back up %s to %s", path, backup_path)
                return False
        return True

    def _decode(self, data: Any, index: int, path: str) -> T | None:
        if not isinstance(data, dict):
            logger.warning("Skipping non-object %s record at index %s in %s", self.format_name, index, path)
            return None
        try:
            return self._codec.from_dict(data)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping invalid record at index %s in %s: %s", index, path, e)
            return None
