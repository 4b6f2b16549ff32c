"""SQLAlchemy (asyncio) implementation of the Store."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from checkin_service.core.errors import ConflictError, DuplicateCheckinError
from checkin_service.db.session import build_sessionmaker, ping
from checkin_service.domain import (
    Attendee,
    Card,
    Certificate,
    CheckinRecord,
    PresentAttendee,
    Session,
    ensure_utc,
)
from checkin_service.models import Attendee as AttendeeRow
from checkin_service.models import Card as CardRow
from checkin_service.models import Certificate as CertificateRow
from checkin_service.models import Checkin as CheckinRow
from checkin_service.models import TalkSession as SessionRow
from checkin_service.stores.interfaces import Store

logger = logging.getLogger(__name__)


def _to_attendee(row: AttendeeRow) -> Attendee:
    return Attendee(reg_number=row.reg_number, name=row.name, program=row.program)


def _to_session(row: SessionRow) -> Session:
    return Session(
        id=row.id,
        title=row.title,
        description=row.description,
        starts_at=ensure_utc(row.starts_at),
        ends_at=ensure_utc(row.ends_at),
        checkin_enabled=row.checkin_enabled,
        created_at=ensure_utc(row.created_at),
        gate_changed_at=ensure_utc(row.gate_changed_at) if row.gate_changed_at else None,
    )


def _to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        attendee_id=row.attendee_id,
        session_id=row.session_id,
        payload=row.payload,
        issued_at=ensure_utc(row.issued_at),
    )


class SqlStore(Store):
    """Relational store; uniqueness comes from primary keys and unique indexes."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessionmaker = build_sessionmaker(engine)

    async def add_attendee(self, attendee: Attendee, card: Card) -> None:
        async with self._sessionmaker() as db:
            db.add(AttendeeRow(
                reg_number=attendee.reg_number,
                name=attendee.name,
                program=attendee.program,
            ))
            db.add(CardRow(
                card_identifier=card.card_identifier,
                attendee_id=card.attendee_id,
                issued_on=card.issued_on,
            ))
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                logger.info(f"Registration rejected for {attendee.reg_number}: {e.orig}")
                raise ConflictError() from e

    async def get_attendee(self, reg_number: int) -> Attendee | None:
        async with self._sessionmaker() as db:
            row = await db.get(AttendeeRow, reg_number)
            return _to_attendee(row) if row else None

    async def find_attendee_by_card(self, card_identifier: str) -> Attendee | None:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(AttendeeRow)
                .join(CardRow, CardRow.attendee_id == AttendeeRow.reg_number)
                .where(CardRow.card_identifier == card_identifier)
            )
            row = result.scalar_one_or_none()
            return _to_attendee(row) if row else None

    async def add_session(self, session: Session) -> None:
        async with self._sessionmaker() as db:
            db.add(SessionRow(
                id=session.id,
                title=session.title,
                description=session.description,
                starts_at=session.starts_at,
                ends_at=session.ends_at,
                checkin_enabled=session.checkin_enabled,
                gate_changed_at=session.gate_changed_at,
                created_at=session.created_at,
            ))
            await db.commit()

    async def get_session(self, session_id: str) -> Session | None:
        async with self._sessionmaker() as db:
            row = await db.get(SessionRow, session_id)
            return _to_session(row) if row else None

    async def list_sessions(self) -> list[Session]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(SessionRow).order_by(SessionRow.starts_at, SessionRow.created_at)
            )
            return [_to_session(row) for row in result.scalars()]

    async def set_gate(self, session_id: str, enabled: bool, changed_at: datetime) -> Session | None:
        async with self._sessionmaker() as db:
            async with db.begin():
                result = await db.execute(
                    update(SessionRow)
                    .where(SessionRow.id == session_id)
                    .values(checkin_enabled=enabled, gate_changed_at=changed_at)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    return None
                row = await db.get(SessionRow, session_id, populate_existing=True)
                return _to_session(row)

    async def list_active_sessions(self) -> list[Session]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(SessionRow)
                .where(SessionRow.checkin_enabled.is_(True))
                .order_by(
                    SessionRow.gate_changed_at.desc(),
                    SessionRow.created_at.desc(),
                    SessionRow.id,
                )
            )
            return [_to_session(row) for row in result.scalars()]

    async def add_checkin(self, record: CheckinRecord) -> None:
        async with self._sessionmaker() as db:
            db.add(CheckinRow(
                attendee_id=record.attendee_id,
                session_id=record.session_id,
                checked_in_at=record.checked_in_at,
            ))
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                # The primary key lost the race; anything else is a real failure
                existing = await db.get(CheckinRow, (record.attendee_id, record.session_id))
                if existing is not None:
                    raise DuplicateCheckinError(record.attendee_id, record.session_id) from None
                raise

    async def list_present(self, session_id: str) -> list[PresentAttendee]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(AttendeeRow, CheckinRow.checked_in_at)
                .join(CheckinRow, CheckinRow.attendee_id == AttendeeRow.reg_number)
                .where(CheckinRow.session_id == session_id)
                .order_by(CheckinRow.checked_in_at, AttendeeRow.reg_number)
            )
            return [
                PresentAttendee(
                    reg_number=attendee.reg_number,
                    name=attendee.name,
                    program=attendee.program,
                    checked_in_at=ensure_utc(checked_in_at),
                )
                for attendee, checked_in_at in result.all()
            ]

    async def list_uncertified_checkins(self, session_id: str) -> list[CheckinRecord]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(CheckinRow)
                .outerjoin(
                    CertificateRow,
                    (CertificateRow.attendee_id == CheckinRow.attendee_id)
                    & (CertificateRow.session_id == CheckinRow.session_id),
                )
                .where(CheckinRow.session_id == session_id)
                .where(CertificateRow.attendee_id.is_(None))
                .order_by(CheckinRow.checked_in_at)
            )
            return [
                CheckinRecord(
                    attendee_id=row.attendee_id,
                    session_id=row.session_id,
                    checked_in_at=ensure_utc(row.checked_in_at),
                )
                for row in result.scalars()
            ]

    async def add_certificates(self, certificates: list[Certificate]) -> None:
        async with self._sessionmaker() as db:
            async with db.begin():
                db.add_all([
                    CertificateRow(
                        attendee_id=cert.attendee_id,
                        session_id=cert.session_id,
                        payload=cert.payload,
                        issued_at=cert.issued_at,
                    )
                    for cert in certificates
                ])

    async def list_certificates(self, session_id: str) -> list[Certificate]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(CertificateRow)
                .where(CertificateRow.session_id == session_id)
                .order_by(CertificateRow.issued_at, CertificateRow.attendee_id)
            )
            return [_to_certificate(row) for row in result.scalars()]

    async def ping(self) -> bool:
        return await ping(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()
