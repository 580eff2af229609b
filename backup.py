from __future__ import annotations

import logging
import shutil
from datetime import datetime, timedelta
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_DIR_NAME = "backups"


def _backups_for(source: Path) -> list[Path]:
    backup_dir = source.parent / BACKUP_DIR_NAME
    if not backup_dir.is_dir():
        return []
    return sorted(backup_dir.glob(f"{source.stem}_backup_*{source.suffix}"))


def create_backup(path: str, now: datetime | None = None) -> str | None:
    """Copy `path` to `backups/<stem>_backup_<timestamp><suffix>` next to it."""
    source = Path(path)
    if not source.exists():
        return None
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    backup_dir = source.parent / BACKUP_DIR_NAME
    backup_path = backup_dir / f"{source.stem}_backup_{stamp}{source.suffix}"
    try:
        backup_dir.mkdir(exist_ok=True)
        shutil.copyfile(source, backup_path)
    except OSError:
        logger.exception("Failed to back up %s to %s", source, backup_path)
        return None
    logger.info("Backup created: %s", backup_path)
    return str(backup_path)


def last_backup_time(path: str) -> datetime | None:
    backups = _backups_for(Path(path))
    if not backups:
        return None
    return max(datetime.fromtimestamp(p.stat().st_mtime) for p in backups)


def backup_if_due(path: str, frequency_days: int, now: datetime | None = None) -> str | None:
    """Create a backup when none exists or the newest is `frequency_days` old."""
    now = now or datetime.now()
    last = last_backup_time(path)
    if last is not None and now - last < timedelta(days=max(1, frequency_days)):
        return None
    return create_backup(path, now)
