"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
SQLAlchemy ORM models are in checkin_service/models (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Attendee:
    """A registered participant, keyed by institutional registration number."""

    reg_number: int
    name: str
    program: str


@dataclass(frozen=True)
class Card:
    """Hardware-facing token bound 1:1 to an attendee."""

    card_identifier: str
    attendee_id: int
    issued_on: date


@dataclass(frozen=True)
class Session:
    """A scheduled talk with its check-in gate."""

    id: str
    title: str
    description: str
    starts_at: datetime
    ends_at: datetime
    checkin_enabled: bool
    created_at: datetime
    gate_changed_at: datetime | None = None


@dataclass(frozen=True)
class CheckinRecord:
    """Proof that an attendee attended a session at a given time."""

    attendee_id: int
    session_id: str
    checked_in_at: datetime


@dataclass(frozen=True)
class PresentAttendee:
    """A check-in joined with the attendee's display fields."""

    reg_number: int
    name: str
    program: str
    checked_in_at: datetime


@dataclass(frozen=True)
class Certificate:
    """Certificate issued for one check-in."""

    attendee_id: int
    session_id: str
    payload: bytes
    issued_at: datetime
