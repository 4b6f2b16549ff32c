"""In-process implementation of the Store.

Every method body runs without awaiting, so on a single event loop each
call is an atomic compare-and-swap against the dictionaries below.
"""

import dataclasses
from datetime import datetime

from checkin_service.core.errors import ConflictError, DuplicateCheckinError
from checkin_service.domain import (
    Attendee,
    Card,
    Certificate,
    CheckinRecord,
    PresentAttendee,
    Session,
)
from checkin_service.stores.interfaces import Store


class MemoryStore(Store):
    """Dictionary-backed store for development and tests."""

    def __init__(self) -> None:
        self._attendees: dict[int, Attendee] = {}
        self._cards: dict[str, Card] = {}
        self._sessions: dict[str, Session] = {}
        self._checkins: dict[tuple[int, str], CheckinRecord] = {}
        self._certificates: dict[tuple[int, str], Certificate] = {}

    async def add_attendee(self, attendee: Attendee, card: Card) -> None:
        if attendee.reg_number in self._attendees or card.card_identifier in self._cards:
            raise ConflictError()
        self._attendees[attendee.reg_number] = attendee
        self._cards[card.card_identifier] = card

    async def get_attendee(self, reg_number: int) -> Attendee | None:
        return self._attendees.get(reg_number)

    async def find_attendee_by_card(self, card_identifier: str) -> Attendee | None:
        card = self._cards.get(card_identifier)
        if card is None:
            return None
        return self._attendees.get(card.attendee_id)

    async def add_session(self, session: Session) -> None:
        self._sessions[session.id] = session

    async def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    async def list_sessions(self) -> list[Session]:
        return sorted(self._sessions.values(), key=lambda s: (s.starts_at, s.created_at))

    async def set_gate(self, session_id: str, enabled: bool, changed_at: datetime) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        updated = dataclasses.replace(session, checkin_enabled=enabled, gate_changed_at=changed_at)
        self._sessions[session_id] = updated
        return updated

    async def list_active_sessions(self) -> list[Session]:
        active = [s for s in self._sessions.values() if s.checkin_enabled]
        # most recently opened first, then newest, then id for a stable order
        active.sort(key=lambda s: s.id)
        active.sort(key=lambda s: (s.gate_changed_at or s.created_at, s.created_at), reverse=True)
        return active

    async def add_checkin(self, record: CheckinRecord) -> None:
        key = (record.attendee_id, record.session_id)
        if key in self._checkins:
            raise DuplicateCheckinError(record.attendee_id, record.session_id)
        self._checkins[key] = record

    async def list_present(self, session_id: str) -> list[PresentAttendee]:
        records = [r for r in self._checkins.values() if r.session_id == session_id]
        records.sort(key=lambda r: (r.checked_in_at, r.attendee_id))
        present = []
        for record in records:
            attendee = self._attendees[record.attendee_id]
            present.append(PresentAttendee(
                reg_number=attendee.reg_number,
                name=attendee.name,
                program=attendee.program,
                checked_in_at=record.checked_in_at,
            ))
        return present

    async def list_uncertified_checkins(self, session_id: str) -> list[CheckinRecord]:
        records = [
            r for key, r in self._checkins.items()
            if r.session_id == session_id and key not in self._certificates
        ]
        return sorted(records, key=lambda r: r.checked_in_at)

    async def add_certificates(self, certificates: list[Certificate]) -> None:
        keys = [(c.attendee_id, c.session_id) for c in certificates]
        # validate the whole batch before writing any of it
        if len(set(keys)) != len(keys):
            raise ValueError("Duplicate certificate in batch")
        for key in keys:
            if key in self._certificates:
                raise ValueError(f"Certificate already issued for {key}")
            if key not in self._checkins:
                raise ValueError(f"No check-in recorded for {key}")
        for key, certificate in zip(keys, certificates):
            self._certificates[key] = certificate

    async def list_certificates(self, session_id: str) -> list[Certificate]:
        certificates = [c for c in self._certificates.values() if c.session_id == session_id]
        return sorted(certificates, key=lambda c: (c.issued_at, c.attendee_id))
