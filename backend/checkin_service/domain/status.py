"""Derived session status, computed at read time and never stored."""

from datetime import datetime, timezone
from enum import Enum


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    CONCLUDED_OR_PAUSED = "CONCLUDED_OR_PAUSED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def derive_status(checkin_enabled: bool, starts_at: datetime, now: datetime) -> SessionStatus:
    """Status shown to organizers.

    An open gate always wins; otherwise a session that has not started yet is
    pending and anything else is concluded or paused.
    """
    if checkin_enabled:
        return SessionStatus.ACTIVE
    if ensure_utc(now) < ensure_utc(starts_at):
        return SessionStatus.PENDING
    return SessionStatus.CONCLUDED_OR_PAUSED
