"""Additive schema migrations for Wrangle.

Only new columns with defaults are ever added; nothing is renamed or dropped.
"""

from __future__ import annotations

from sqlalchemy import text

PLANNER_ITEM_COLUMNS = {
    "notes": "TEXT NOT NULL DEFAULT ''",
    "is_completed": "BOOLEAN NOT NULL DEFAULT 0",
    "priority": "VARCHAR(6) NOT NULL DEFAULT 'MEDIUM'",
    "calendar_event_id": "TEXT",
    "reminder_minutes_before": "INTEGER",
    "created_at": "DATETIME",
    "updated_at": "DATETIME",
}

TIME_BLOCK_COLUMNS = {
    "start_minute": "INTEGER NOT NULL DEFAULT 0",
    "end_minute": "INTEGER NOT NULL DEFAULT 0",
    "color": "TEXT NOT NULL DEFAULT 'blue'",
    "is_active": "BOOLEAN NOT NULL DEFAULT 1",
    "position": "INTEGER NOT NULL DEFAULT 0",
}


def _column_exists(conn, table: str, column: str) -> bool:
    result = conn.execute(text(f"PRAGMA table_info('{table}')"))
    return any(row[1] == column for row in result)


def _table_exists(conn, table: str) -> bool:
    result = conn.execute(
        text("SELECT name FROM sqlite_master WHERE type='table' AND name=:name"),
        {"name": table},
    )
    return result.first() is not None


def _ensure_columns(conn, table: str, columns: dict[str, str]) -> list[str]:
    if not _table_exists(conn, table):
        return []
    added = []
    for name, ddl in columns.items():
        if not _column_exists(conn, table, name):
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}"))
            added.append(name)
    return added


def ensure_planner_item_columns(conn) -> list[str]:
    added = _ensure_columns(conn, "planneritem", PLANNER_ITEM_COLUMNS)
    if "created_at" in added or "updated_at" in added:
        conn.execute(
            text(
                """
                UPDATE planneritem
                SET created_at = COALESCE(created_at, start_time),
                    updated_at = COALESCE(updated_at, created_at, start_time)
                """
            )
        )
    return added


def ensure_time_block_columns(conn) -> list[str]:
    return _ensure_columns(conn, "timeblock", TIME_BLOCK_COLUMNS)


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_planner_item_columns(conn)
        ensure_time_block_columns(conn)


__all__ = ["run_all", "ensure_planner_item_columns", "ensure_time_block_columns"]
