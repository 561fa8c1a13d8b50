"""JSON-backed user preferences."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from core.logging_setup import get_logger
from core.settings import CONFIG_PATH, REMINDERS

logger = get_logger("config")

VIEWS = ("day", "week", "today")


@dataclass
class AppConfig:
    """Preferences persisted to ``config.json``."""

    default_view: str = "day"
    sync_to_calendar_default: bool = False
    reminder_enabled_default: bool = True
    reminder_minutes_default: int = REMINDERS.default_minutes_before
    time_blocks_seeded: bool = False

    def __post_init__(self) -> None:
        if self.default_view not in VIEWS:
            self.default_view = "day"
        try:
            self.reminder_minutes_default = max(0, int(self.reminder_minutes_default))
        except (TypeError, ValueError):
            self.reminder_minutes_default = REMINDERS.default_minutes_before


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[Path] = None) -> AppConfig:
    data = _load_raw(path or CONFIG_PATH)
    known = {f.name for f in fields(AppConfig)}
    return AppConfig(**{k: v for k, v in data.items() if k in known})


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    tmp = target.with_suffix(".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(target)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    target = path or CONFIG_PATH
    cfg = load_config(target)
    for key, value in changes.items():
        if not hasattr(cfg, key):
            raise AttributeError(f"Unknown config key: {key}")
        setattr(cfg, key, value)
    save_config(cfg, target)
    return cfg


__all__ = ["AppConfig", "load_config", "save_config", "update_config"]
