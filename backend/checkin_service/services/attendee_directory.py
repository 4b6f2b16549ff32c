"""Attendee directory - registration and card lookups."""

import logging
import uuid
from datetime import date

from checkin_service.core.errors import AttendeeNotFoundError, CardNotFoundError
from checkin_service.domain import Attendee, Card
from checkin_service.stores.interfaces import Store

logger = logging.getLogger(__name__)


class AttendeeDirectory:
    """Holds attendees and their one-to-one card binding."""

    def __init__(self, store: Store) -> None:
        self._store = store

    async def register_attendee(
        self,
        reg_number: int,
        name: str,
        program: str,
        card_identifier: str | None = None,
        issued_on: date | None = None,
    ) -> tuple[Attendee, Card]:
        """Create an attendee and its card in one step.

        A card identifier is generated when none is given.

        Raises:
            ConflictError: If the registration number or card is already taken.
        """
        attendee = Attendee(reg_number=reg_number, name=name, program=program)
        card = Card(
            card_identifier=card_identifier or str(uuid.uuid4()),
            attendee_id=reg_number,
            issued_on=issued_on or date.today(),
        )
        await self._store.add_attendee(attendee, card)
        logger.info(f"✅ Registered attendee {reg_number} with card {card.card_identifier}")
        return attendee, card

    async def get_attendee(self, reg_number: int) -> Attendee:
        attendee = await self._store.get_attendee(reg_number)
        if attendee is None:
            raise AttendeeNotFoundError(reg_number)
        return attendee

    async def find_by_card_identifier(self, card_identifier: str) -> Attendee:
        """Resolve a scanned card to its attendee.

        Raises:
            CardNotFoundError: If the card is not bound to anyone.
        """
        attendee = await self._store.find_attendee_by_card(card_identifier)
        if attendee is None:
            raise CardNotFoundError(card_identifier)
        return attendee
