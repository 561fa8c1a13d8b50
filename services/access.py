"""Cached authorization state for platform-backed services."""
from __future__ import annotations

from enum import Enum


class AuthorizationState(str, Enum):
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"

    @classmethod
    def from_bool(cls, granted: bool) -> "AuthorizationState":
        return cls.GRANTED if granted else cls.DENIED


__all__ = ["AuthorizationState"]
