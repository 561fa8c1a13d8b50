"""Application-wide logging configuration."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from core.settings import LOGGING

ROOT_LOGGER_NAME = "wrangle"


def configure_logging(*, console: bool | None = None) -> logging.Logger:
    """Attach the rotating file handler to the ``wrangle`` logger once."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if getattr(root, "_wrangle_configured", False):
        return root

    formatter = logging.Formatter(LOGGING.fmt)
    try:
        LOGGING.path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOGGING.path,
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
    except OSError:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if console if console is not None else LOGGING.console:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)

    root.setLevel(LOGGING.level)
    root._wrangle_configured = True  # type: ignore[attr-defined]
    return root


def get_logger(component: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


def read_log_tail(lines: int = 100) -> str:
    try:
        with open(LOGGING.path, "r", encoding="utf-8") as fh:
            content = fh.readlines()
    except FileNotFoundError:
        return "No log written yet."
    return "\n".join(line.rstrip("\n") for line in content[-lines:])


__all__ = ["configure_logging", "get_logger", "read_log_tail", "ROOT_LOGGER_NAME"]
