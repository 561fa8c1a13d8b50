"""Daily snapshots of the SQLite database."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
import sqlite3

from core.logging_setup import get_logger

logger = get_logger("backup")


def backup_name(db_file: Path, day: date) -> str:
    return f"{db_file.stem}_{day.isoformat()}{db_file.suffix}"


def _snapshot_date(path: Path, prefix: str) -> date | None:
    if not path.stem.startswith(prefix):
        return None
    try:
        return datetime.strptime(path.stem[len(prefix):], "%Y-%m-%d").date()
    except ValueError:
        return None


def snapshot_database(source: Path, destination: Path) -> None:
    """Copy a live database through SQLite's online backup API."""
    src = sqlite3.connect(str(source))
    try:
        dst = sqlite3.connect(str(destination))
        try:
            src.backup(dst)
        finally:
            dst.close()
    finally:
        src.close()


def prune_backups(db_file: Path, backup_dir: Path, *, today: date, keep_days: int) -> list[Path]:
    if keep_days <= 0:
        return []
    prefix = f"{db_file.stem}_"
    cutoff = today - timedelta(days=keep_days - 1)
    removed = []
    for file in backup_dir.glob(f"{prefix}*{db_file.suffix}"):
        taken = _snapshot_date(file, prefix)
        if taken is None or taken >= cutoff:
            continue
        try:
            file.unlink()
            removed.append(file)
        except OSError as exc:
            logger.warning("Could not remove old backup %s: %s", file, exc)
    return removed


def ensure_daily_backup(
    db_path: str | Path,
    backup_dir: str | Path,
    *,
    keep_days: int = 7,
) -> Path | None:
    """Take today's snapshot if missing and drop snapshots older than ``keep_days``."""

    db_file = Path(db_path)
    if not db_file.exists():
        return None

    backups = Path(backup_dir)
    backups.mkdir(parents=True, exist_ok=True)

    today = datetime.now().date()
    destination = backups / backup_name(db_file, today)

    created: Path | None = None
    if not destination.exists():
        try:
            snapshot_database(db_file, destination)
            created = destination
            logger.info("Database snapshot written to %s", destination)
        except sqlite3.DatabaseError as exc:
            logger.error("Database snapshot failed: %s", exc)
            if destination.exists():
                destination.unlink()

    prune_backups(db_file, backups, today=today, keep_days=keep_days)
    return created


__all__ = ["ensure_daily_backup", "snapshot_database", "prune_backups", "backup_name"]
