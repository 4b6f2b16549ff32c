from fastapi import APIRouter, Depends, status

from checkin_service.api.deps import get_directory
from checkin_service.schemas import AttendeeCreate, AttendeeResult, CardResult, ErrorResponse
from checkin_service.services import AttendeeDirectory

router = APIRouter()

@router.post(
    "/attendees",
    response_model=AttendeeResult,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def register_attendee(
    payload: AttendeeCreate,
    directory: AttendeeDirectory = Depends(get_directory),
):
    """
    Register an attendee together with their card.
    A card identifier is generated when none is supplied.
    """
    attendee, card = await directory.register_attendee(
        reg_number=payload.reg_number,
        name=payload.name,
        program=payload.program,
        card_identifier=payload.card_identifier,
        issued_on=payload.issuance_date,
    )
    return AttendeeResult(
        reg_number=attendee.reg_number,
        name=attendee.name,
        program=attendee.program,
        card=CardResult(card_identifier=card.card_identifier, issuance_date=card.issued_on),
    )
