from __future__ import annotations

import json
import logging

from .base import FileStorage, T, path_lock, write_atomically

logger = logging.getLogger(__name__)


class JsonStorage(FileStorage[T]):
    """Hierarchical backend: one JSON array per collection file."""

    format_name = "json"

    def save_list(self, items: list[T], path: str) -> bool:
        payload = [self._codec.to_dict(item) for item in items]
        return self._write(payload, path)

    def load_list(self, path: str) -> list[T]:
        data = self._read(path)
        if data is None:
            return []
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            logger.warning("Unexpected JSON root in %s, using empty dataset", path)
            return []
        items: list[T] = []
        for index, element in enumerate(data):
            item = self._decode(element, index, path)
            if item is not None:
                items.append(item)
        return items

    def save_item(self, item: T, path: str) -> bool:
        return self._write(self._codec.to_dict(item), path)

    def load_item(self, path: str) -> T | None:
        data = self._read(path)
        if isinstance(data, list):
            data = data[0] if data else None
        if data is None:
            return None
        return self._decode(data, 0, path)

    def _read(self, path: str):
        with path_lock(path):
            try:
                with open(path, encoding="utf-8") as f:
                    return json.load(f)
            except (FileNotFoundError, json.JSONDecodeError):
                logger.warning("Failed to load JSON data from %s, using empty dataset", path)
                return None
            except (OSError, UnicodeDecodeError):
                logger.exception("Failed to read JSON data from %s", path)
                return None

    def _write(self, payload, path: str) -> bool:
        with path_lock(path):
            try:
                write_atomically(
                    path, lambda f: json.dump(payload, f, indent=2, ensure_ascii=False)
                )
            except (OSError, TypeError, ValueError):
                logger.exception("Failed to save JSON data to %s", path)
                return False
        return True
