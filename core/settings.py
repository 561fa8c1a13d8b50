"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import logging
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``."""

    platform_id = (platform or sys.platform).lower()
    environ = dict(env or os.environ)
    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = home_dir / "Library" / "Application Support"
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return base.expanduser() / sanitized


APP_NAME = "Wrangle"


DATA_DIR = Path(os.environ.get("WRANGLE_DATA_DIR") or get_default_data_dir(APP_NAME))
SECRETS_DIR = DATA_DIR / "secrets"
BACKUP_DIR = DATA_DIR / "backups"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, SECRETS_DIR, BACKUP_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "wrangle.db"
CONFIG_PATH = DATA_DIR / "config.json"
TOKEN_PATH = SECRETS_DIR / "token.json"
CLIENT_SECRET_PATH = SECRETS_DIR / "client_secret.json"
LOG_PATH = LOG_DIR / "wrangle.log"


@dataclass(frozen=True)
class ThemeColors:
    accent: str = "#6366F1"
    surface: str = "#F8FAFC"
    card: str = "#FFFFFF"
    outline: str = "#E5E7EB"
    text_subtle: str = "#6B7280"
    text_tertiary: str = "#9CA3AF"
    today_bg: str = "#EEF2FF"
    success: str = "#10B981"
    danger: str = "#EF4444"


# Symbolic palette shared by priorities and time blocks.
PALETTE: dict[str, str] = {
    "blue": "#3B82F6",
    "orange": "#F59E0B",
    "red": "#EF4444",
    "yellow": "#EAB308",
    "purple": "#8B5CF6",
    "green": "#22C55E",
    "indigo": "#6366F1",
    "pink": "#EC4899",
    "teal": "#14B8A6",
    "gray": "#6B7280",
}


@dataclass(frozen=True)
class DayViewSettings:
    first_hour: int = 6
    last_hour: int = 22
    hour_row_height: int = 56
    hours_column_width: int = 64


@dataclass(frozen=True)
class WeekViewSettings:
    # 0 = Monday, matches ``date.weekday()``
    first_weekday: int = 0
    items_per_day_preview: int = 3
    day_card_width: int = 150


@dataclass(frozen=True)
class EditorSettings:
    duration_presets: tuple[tuple[str, int], ...] = (
        ("30m", 30),
        ("1h", 60),
        ("1.5h", 90),
        ("2h", 120),
        ("3h", 180),
    )
    reminder_presets: tuple[int, ...] = (5, 15, 30, 60)
    minute_step: int = 15
    default_start_hour: int = 9
    dialog_width: int = 520


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "system"
    color_scheme_seed: str = "#6366F1"
    window_width: int = 900
    window_height: int = 600
    window_min_width: int = 720
    window_min_height: int = 480
    refresh_interval_sec: int = 60
    theme: ThemeColors = ThemeColors()
    day: DayViewSettings = DayViewSettings()
    week: WeekViewSettings = WeekViewSettings()
    editor: EditorSettings = EditorSettings()


UI = UISettings()


@dataclass(frozen=True)
class CalendarSettings:
    enabled: bool = True
    calendar_id: str = "primary"
    scopes: tuple[str, ...] = (
        "https://www.googleapis.com/auth/calendar.events",
        "https://www.googleapis.com/auth/calendar.readonly",
    )
    # Turning "sync to calendar" off on a linked item removes the mirrored event.
    unlink_when_sync_disabled: bool = True
    max_results: int = 2500


CALENDAR = CalendarSettings()


@dataclass(frozen=True)
class ReminderSettings:
    enabled: bool = True
    default_minutes_before: int = 15
    snooze_minutes: int = 10
    misfire_grace_time_sec: int = 300
    id_prefix: str = "wrangle-item-"
    category: str = "PLANNER_ITEM"
    jobs_table: str = "wrangle_reminders"


REMINDERS = ReminderSettings()


@dataclass(frozen=True)
class DispatchSettings:
    # One worker keeps calendar/reminder side effects in submission order.
    max_workers: int = 1
    shutdown_timeout_sec: float = 10.0


DISPATCH = DispatchSettings()


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = True
    directory: Path = BACKUP_DIR
    keep_days: int = 7


BACKUP = BackupSettings()


@dataclass(frozen=True)
class LoggingSettings:
    level: int = logging.INFO
    path: Path = LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3
    fmt: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    console: bool = field(default_factory=lambda: bool(os.environ.get("WRANGLE_LOG_CONSOLE")))


LOGGING = LoggingSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "SECRETS_DIR",
    "BACKUP_DIR",
    "LOG_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "TOKEN_PATH",
    "CLIENT_SECRET_PATH",
    "LOG_PATH",
    "PALETTE",
    "UI",
    "CALENDAR",
    "REMINDERS",
    "DISPATCH",
    "BACKUP",
    "LOGGING",
    "get_default_data_dir",
]
