"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from checkin_service.db.session import build_engine, init_db
from checkin_service.services import (
    AttendeeDirectory,
    CertificateIssuer,
    CheckinLedger,
    SessionRegistry,
)
from checkin_service.stores import MemoryStore, SqlStore


class FakeClock:
    """Clock that only moves when told to; every reading is one microsecond later."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(microseconds=1)
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'checkin.db'}")
    await init_db(engine)
    sql_store = SqlStore(engine)
    yield sql_store
    await sql_store.close()


@pytest.fixture
def directory(store) -> AttendeeDirectory:
    return AttendeeDirectory(store)


@pytest.fixture
def registry(store, clock) -> SessionRegistry:
    return SessionRegistry(store, clock=clock)


@pytest.fixture
def ledger(store, clock) -> CheckinLedger:
    return CheckinLedger(store, clock=clock)


@pytest.fixture
def issuer(store, clock) -> CertificateIssuer:
    return CertificateIssuer(store, clock=clock)


@pytest.fixture
async def open_session(registry, clock):
    """A session that started at the clock's current time, gate open."""
    session = await registry.create_session(
        "Intro", "Opening talk", clock.now, clock.now + timedelta(hours=1)
    )
    return await registry.set_gate(session.id, True)


@pytest.fixture
async def ana(directory):
    attendee, _ = await directory.register_attendee(1001, "Ana", "Computer Science", "card-A")
    return attendee
