from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import select

from core.logging_setup import get_logger
from core.settings import PALETTE
from models.time_block import TimeBlock, default_time_blocks
from services.planner_items import SessionFactory
from storage.config import load_config, update_config
from storage.db import get_session

logger = get_logger("time_blocks")

BLOCK_FIELDS = ("name", "start_hour", "start_minute", "end_hour", "end_minute", "color", "is_active", "position")


def validate_block(block: TimeBlock) -> None:
    if not (block.name or "").strip():
        raise ValueError("Time block name must not be empty")
    for label, value, upper in (
        ("start_hour", block.start_hour, 23),
        ("end_hour", block.end_hour, 23),
        ("start_minute", block.start_minute, 59),
        ("end_minute", block.end_minute, 59),
    ):
        if not isinstance(value, int) or not 0 <= value <= upper:
            raise ValueError(f"{label} must be between 0 and {upper}")
    if block.end_total_minutes <= block.start_total_minutes:
        raise ValueError("Time block must end after it starts")
    if block.color not in PALETTE:
        raise ValueError(f"Unknown color: {block.color}")


class TimeBlockRepository:
    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory or get_session

    def list_all(self) -> List[TimeBlock]:
        with self._session_factory() as s:
            stmt = select(TimeBlock).order_by(TimeBlock.position.asc(), TimeBlock.start_hour.asc())
            return list(s.exec(stmt))

    def list_active(self) -> List[TimeBlock]:
        return [block for block in self.list_all() if block.is_active]

    def get(self, block_id: str) -> Optional[TimeBlock]:
        with self._session_factory() as s:
            return s.get(TimeBlock, block_id)

    def count(self) -> int:
        with self._session_factory() as s:
            return int(s.exec(select(func.count()).select_from(TimeBlock)).one())

    def add(self, block: TimeBlock) -> TimeBlock:
        validate_block(block)
        with self._session_factory() as s:
            s.add(block)
            s.commit()
            s.refresh(block)
            return block

    def update(self, block_id: str, **fields) -> Optional[TimeBlock]:
        unknown = set(fields) - set(BLOCK_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        with self._session_factory() as s:
            block = s.get(TimeBlock, block_id)
            if not block:
                return None
            for key, value in fields.items():
                setattr(block, key, value)
            validate_block(block)
            s.add(block)
            s.commit()
            s.refresh(block)
            return block

    def delete(self, block_id: str) -> bool:
        with self._session_factory() as s:
            block = s.get(TimeBlock, block_id)
            if not block:
                return False
            s.delete(block)
            s.commit()
            return True

    def seed_defaults(self) -> List[TimeBlock]:
        """Insert the default day segments into an empty table."""
        if self.count():
            return []
        blocks = default_time_blocks()
        with self._session_factory() as s:
            for block in blocks:
                s.add(block)
            s.commit()
            for block in blocks:
                s.refresh(block)
        logger.info("Seeded %d default time blocks", len(blocks))
        return blocks


def ensure_default_blocks(
    repo: Optional[TimeBlockRepository] = None,
    *,
    config_path: Optional[Path] = None,
) -> List[TimeBlock]:
    """Seed defaults once per installation; later deletions are respected."""
    cfg = load_config(config_path)
    if cfg.time_blocks_seeded:
        return []
    created = (repo or TimeBlockRepository()).seed_defaults()
    update_config(config_path, time_blocks_seeded=True)
    return created


__all__ = ["TimeBlockRepository", "ensure_default_blocks", "validate_block"]
