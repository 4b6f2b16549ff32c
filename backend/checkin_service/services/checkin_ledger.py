"""Check-in ledger - one check-in per attendee per session.

Both the card reader bridge and the manual API end up in ``checkin``. The
gate is read at call time; the uniqueness of the record is left to the
store's atomic insert, so two racing calls for the same pair leave exactly
one record and the loser gets ``DuplicateCheckinError``.
"""

import logging
from datetime import datetime
from typing import Callable

from checkin_service.core.errors import (
    AttendeeNotFoundError,
    CheckinNotActiveError,
    SessionNotFoundError,
)
from checkin_service.domain import CheckinRecord, PresentAttendee, utcnow
from checkin_service.stores.interfaces import Store

logger = logging.getLogger(__name__)


class CheckinLedger:
    """Records check-ins and lists who is present."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def checkin(self, attendee_id: int, session_id: str) -> CheckinRecord:
        """Check an attendee in to a session.

        Raises:
            SessionNotFoundError: If the session does not exist.
            CheckinNotActiveError: If the session gate is closed.
            AttendeeNotFoundError: If the attendee is not registered.
            DuplicateCheckinError: If the attendee already checked in.
        """
        session = await self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if not session.checkin_enabled:
            raise CheckinNotActiveError(session_id)

        if await self._store.get_attendee(attendee_id) is None:
            raise AttendeeNotFoundError(attendee_id)

        record = CheckinRecord(
            attendee_id=attendee_id,
            session_id=session_id,
            checked_in_at=self._clock(),
        )
        await self._store.add_checkin(record)
        logger.info(f"✅ Attendee {attendee_id} checked in to session {session_id}")
        return record

    async def list_present(self, session_id: str) -> list[PresentAttendee]:
        """Return attendees checked in to a session, earliest first."""
        if await self._store.get_session(session_id) is None:
            raise SessionNotFoundError(session_id)
        return await self._store.list_present(session_id)
