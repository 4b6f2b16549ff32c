"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Uniqueness rules
(registration number, card identifier, one check-in per attendee and
session, one certificate per check-in) are enforced atomically by the store
itself, never by a lookup in the calling service.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from checkin_service.domain import (
    Attendee,
    Card,
    Certificate,
    CheckinRecord,
    PresentAttendee,
    Session,
)


class Store(ABC):
    """Interface for check-in persistence operations."""

    @abstractmethod
    async def add_attendee(self, attendee: Attendee, card: Card) -> None:
        """Persist an attendee together with its card in one unit.

        Raises:
            ConflictError: If the registration number or card identifier exists.
        """
        ...

    @abstractmethod
    async def get_attendee(self, reg_number: int) -> Attendee | None:
        """Return an attendee by registration number, or None if not found."""
        ...

    @abstractmethod
    async def find_attendee_by_card(self, card_identifier: str) -> Attendee | None:
        """Return the attendee bound to a card, or None if the card is unknown."""
        ...

    @abstractmethod
    async def add_session(self, session: Session) -> None:
        """Persist a new session."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Session | None:
        """Return a session by ID, or None if not found."""
        ...

    @abstractmethod
    async def list_sessions(self) -> list[Session]:
        """Return all sessions ordered by starts_at ascending."""
        ...

    @abstractmethod
    async def set_gate(self, session_id: str, enabled: bool, changed_at: datetime) -> Session | None:
        """Atomically set the check-in gate; None if the session does not exist."""
        ...

    @abstractmethod
    async def list_active_sessions(self) -> list[Session]:
        """Return sessions with an open gate, most recently opened first."""
        ...

    @abstractmethod
    async def add_checkin(self, record: CheckinRecord) -> None:
        """Insert a check-in record.

        Raises:
            DuplicateCheckinError: If a record for the same pair already exists.
        """
        ...

    @abstractmethod
    async def list_present(self, session_id: str) -> list[PresentAttendee]:
        """Return check-ins for a session joined with attendee fields, oldest first."""
        ...

    @abstractmethod
    async def list_uncertified_checkins(self, session_id: str) -> list[CheckinRecord]:
        """Return check-ins of a session that have no certificate yet."""
        ...

    @abstractmethod
    async def add_certificates(self, certificates: list[Certificate]) -> None:
        """Persist all certificates or none of them."""
        ...

    @abstractmethod
    async def list_certificates(self, session_id: str) -> list[Certificate]:
        """Return certificates issued for a session."""
        ...

    async def ping(self) -> bool:
        """Return True when the backing store is reachable."""
        return True

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
