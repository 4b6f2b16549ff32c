from fastapi import APIRouter, Depends, status
from typing import List

from checkin_service.api.deps import get_ledger
from checkin_service.schemas import CheckinCreate, CheckinResult, ErrorResponse, PresentAttendeeResult
from checkin_service.services import CheckinLedger

router = APIRouter()

@router.post(
    "/checkin",
    response_model=CheckinResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def manual_checkin(
    payload: CheckinCreate,
    ledger: CheckinLedger = Depends(get_ledger),
):
    """Check an attendee in by hand, same rules as a card scan."""
    record = await ledger.checkin(payload.attendee_id, payload.session_id)
    return CheckinResult(
        attendee_id=record.attendee_id,
        session_id=record.session_id,
        checked_in_at=record.checked_in_at,
    )

@router.get(
    "/sessions/{session_id}/present",
    response_model=List[PresentAttendeeResult],
    responses={404: {"model": ErrorResponse}},
)
async def list_present(
    session_id: str,
    ledger: CheckinLedger = Depends(get_ledger),
):
    """Attendees checked in to a talk, earliest first."""
    present = await ledger.list_present(session_id)
    return [
        PresentAttendeeResult(
            reg_number=p.reg_number,
            name=p.name,
            program=p.program,
            checked_in_at=p.checked_in_at,
        )
        for p in present
    ]
