"""Certificate issuer - turns un-certificated check-ins into certificates."""

import logging
from datetime import datetime
from typing import Callable, Protocol

from checkin_service.core.errors import BatchFailureError, SessionNotFoundError
from checkin_service.domain import Certificate, CheckinRecord, Session, utcnow
from checkin_service.stores.interfaces import Store

logger = logging.getLogger(__name__)


class CertificateRenderer(Protocol):
    """Produces the certificate artifact for one check-in."""

    async def render(self, record: CheckinRecord, session: Session) -> bytes:
        ...


class PlaceholderRenderer:
    """Returns a fixed payload; real PDF rendering happens elsewhere."""

    def __init__(self, placeholder: bytes = b"PDF_PLACEHOLDER") -> None:
        self._placeholder = placeholder

    async def render(self, record: CheckinRecord, session: Session) -> bytes:
        return self._placeholder


class CertificateIssuer:
    """Issues certificates for a session in all-or-nothing batches."""

    def __init__(
        self,
        store: Store,
        renderer: CertificateRenderer | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._renderer = renderer or PlaceholderRenderer()
        self._clock = clock

    async def issue_certificates(self, session_id: str) -> int:
        """Issue certificates for every check-in that lacks one.

        Running it again without new check-ins issues nothing.

        Returns:
            The number of certificates issued.

        Raises:
            SessionNotFoundError: If the session does not exist.
            BatchFailureError: If any certificate could not be created;
                none of the batch is kept in that case.
        """
        session = await self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        pending = await self._store.list_uncertified_checkins(session_id)
        if not pending:
            logger.info(f"No new certificates to issue for session {session_id}")
            return 0

        try:
            issued_at = self._clock()
            certificates = [
                Certificate(
                    attendee_id=record.attendee_id,
                    session_id=record.session_id,
                    payload=await self._renderer.render(record, session),
                    issued_at=issued_at,
                )
                for record in pending
            ]
            await self._store.add_certificates(certificates)
        except Exception as e:
            logger.error(f"❌ Certificate batch failed for session {session_id}: {e}", exc_info=True)
            raise BatchFailureError(session_id) from e

        logger.info(f"✅ Issued {len(certificates)} certificates for session {session_id}")
        return len(certificates)

    async def list_certificates(self, session_id: str) -> list[Certificate]:
        if await self._store.get_session(session_id) is None:
            raise SessionNotFoundError(session_id)
        return await self._store.list_certificates(session_id)
