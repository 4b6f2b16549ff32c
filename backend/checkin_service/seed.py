"""Register a demo attendee with a known card.

    python -m checkin_service.seed
"""

import asyncio
import logging
from datetime import date

from checkin_service.core.config import settings
from checkin_service.core.errors import ConflictError
from checkin_service.core.logging import setup_logging
from checkin_service.db.session import build_engine, init_db
from checkin_service.services import AttendeeDirectory
from checkin_service.stores import SqlStore

logger = logging.getLogger(__name__)

DEMO_CARD = "550e8400-e29b-41d4-a716-446655440000"
DEMO_REG_NUMBER = 299921


async def seed(database_url: str) -> None:
    engine = build_engine(database_url)
    await init_db(engine)
    store = SqlStore(engine)
    try:
        directory = AttendeeDirectory(store)
        await directory.register_attendee(
            reg_number=DEMO_REG_NUMBER,
            name="Henrique Barbosa Sampaio",
            program="DSM",
            card_identifier=DEMO_CARD,
            issued_on=date.today(),
        )
    except ConflictError:
        logger.info(f"Demo attendee {DEMO_REG_NUMBER} already registered")
    finally:
        await store.close()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    asyncio.run(seed(settings.DATABASE_URL))
