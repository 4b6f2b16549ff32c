"""Session registry - talks, their check-in gate and derived status.

Status is a pure function of (gate, start, now) and is computed on every
read. Nothing here caches session state; every gate read goes to the store.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable

from checkin_service.core.errors import NoActiveSessionError, SessionNotFoundError
from checkin_service.domain import Session, SessionStatus, derive_status, ensure_utc, utcnow
from checkin_service.stores.interfaces import Store

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Service for session (talk) operations."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def create_session(
        self,
        title: str,
        description: str,
        starts_at: datetime,
        ends_at: datetime,
    ) -> Session:
        """Create a session with its gate closed.

        Raises:
            ValueError: If the session ends before it starts.
        """
        starts_at = ensure_utc(starts_at)
        ends_at = ensure_utc(ends_at)
        if ends_at < starts_at:
            raise ValueError("Session cannot end before it starts")

        session = Session(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            starts_at=starts_at,
            ends_at=ends_at,
            checkin_enabled=False,
            created_at=self._clock(),
        )
        await self._store.add_session(session)
        logger.info(f"Created session {session.id} ({title})")
        return session

    async def list_sessions(self) -> list[tuple[Session, SessionStatus]]:
        """Return all sessions with their status at the time of the call."""
        sessions = await self._store.list_sessions()
        now = self._clock()
        return [(s, derive_status(s.checkin_enabled, s.starts_at, now)) for s in sessions]

    async def get_session(self, session_id: str) -> Session:
        session = await self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def status_of(self, session: Session) -> SessionStatus:
        return derive_status(session.checkin_enabled, session.starts_at, self._clock())

    async def set_gate(self, session_id: str, enabled: bool) -> Session:
        """Open or close check-in for a session.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await self._store.set_gate(session_id, enabled, self._clock())
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Check-in {'opened' if enabled else 'paused'} for session {session_id}")
        return session

    async def find_active_session(self) -> Session:
        """Return the session that scans should be booked against.

        When several gates are open, the one opened most recently wins.

        Raises:
            NoActiveSessionError: If no gate is open.
        """
        active = await self._store.list_active_sessions()
        if not active:
            raise NoActiveSessionError()
        if len(active) > 1:
            logger.warning(
                f"⚠️ {len(active)} sessions accept check-ins at once; "
                f"using most recently opened {active[0].id} ({active[0].title})"
            )
        return active[0]
