import json

import pytest
from sqlalchemy import inspect, text
from sqlmodel import create_engine

from storage import migrations
from storage.config import AppConfig, load_config, save_config, update_config
from storage.db import init_db


def test_config_defaults_when_missing(tmp_path):
    cfg = load_config(tmp_path / "config.json")
    assert cfg == AppConfig()
    assert cfg.reminder_minutes_default == 15
    assert cfg.time_blocks_seeded is False


def test_config_round_trip_and_unknown_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_view": "week", "legacy": 1}), encoding="utf-8")
    assert load_config(path).default_view == "week"

    cfg = update_config(path, sync_to_calendar_default=True)
    assert cfg.sync_to_calendar_default is True
    assert json.loads(path.read_text(encoding="utf-8"))["sync_to_calendar_default"] is True
    assert not path.with_suffix(".tmp").exists()

    with pytest.raises(AttributeError):
        update_config(path, nonsense=True)


def test_config_sanitizes_values(tmp_path):
    path = tmp_path / "config.json"
    save_config(AppConfig(default_view="month", reminder_minutes_default="x"), path)
    cfg = load_config(path)
    assert cfg.default_view == "day"
    assert cfg.reminder_minutes_default == 15


def test_broken_config_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{", encoding="utf-8")
    assert load_config(path) == AppConfig()


def test_migrations_add_missing_columns(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'old.db'}")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE planneritem (id TEXT PRIMARY KEY, title TEXT, "
                "start_time DATETIME, end_time DATETIME)"
            )
        )
        conn.execute(
            text("INSERT INTO planneritem VALUES ('a', 'Old', '2030-01-01 09:00:00', '2030-01-01 10:00:00')")
        )

    init_db(engine)
    init_db(engine)

    columns = {c["name"] for c in inspect(engine).get_columns("planneritem")}
    assert set(migrations.PLANNER_ITEM_COLUMNS) <= columns
    with engine.connect() as conn:
        row = conn.execute(text("SELECT priority, created_at, is_completed FROM planneritem")).one()
    assert row[0] == "MEDIUM"
    assert row[1] is not None
    assert row[2] == 0
    assert "timeblock" in inspect(engine).get_table_names()
