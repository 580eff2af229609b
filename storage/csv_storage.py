from __future__ import annotations

import csv
import json
import logging
from typing import Any

from .base import FileStorage, T, path_lock, write_atomically

logger = logging.getLogger(__name__)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class CsvStorage(FileStorage[T]):
    """Row-oriented backend: header row of codec fields, one entity per row."""

    format_name = "csv"

    def save_list(self, items: list[T], path: str) -> bool:
        fields = list(self._codec.fields)

        def write(f) -> None:
            writer = csv.writer(f)
            writer.writerow(fields)
            for item in items:
                data = self._codec.to_dict(item)
                writer.writerow([_cell(data.get(name)) for name in fields])

        with path_lock(path):
            try:
                write_atomically(path, write, newline="")
            except (OSError, csv.Error, TypeError, ValueError):
                logger.exception("Failed to save CSV data to %s", path)
                return False
        return True

    def load_list(self, path: str) -> list[T]:
        items: list[T] = []
        with path_lock(path):
            try:
                with open(path, newline="", encoding="utf-8") as f:
                    reader = csv.DictReader(f)
                    for index, row in enumerate(reader, start=1):
                        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                            continue
                        item = self._decode(dict(row), index, path)
                        if item is not None:
                            items.append(item)
            except FileNotFoundError:
                logger.warning("Failed to load CSV data from %s, using empty dataset", path)
                return []
            except (OSError, csv.Error, UnicodeDecodeError):
                logger.exception("Failed to read CSV data from %s", path)
                return items
        return items

    def save_item(self, item: T, path: str) -> bool:
        return self.save_list([item], path)

    def load_item(self, path: str) -> T | None:
        items = self.load_list(path)
        return items[0] if items else None
