from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from checkin_service.api.deps import get_registry
from checkin_service.domain import Session, SessionStatus
from checkin_service.schemas import ErrorResponse, GateToggle, SessionCreate, SessionResult
from checkin_service.services import SessionRegistry

router = APIRouter()

def to_result(session: Session, session_status: SessionStatus) -> SessionResult:
    return SessionResult(
        id=session.id,
        title=session.title,
        description=session.description,
        start=session.starts_at,
        end=session.ends_at,
        checkin_enabled=session.checkin_enabled,
        status=session_status,
    )

@router.post(
    "/sessions",
    response_model=SessionResult,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_session(
    payload: SessionCreate,
    registry: SessionRegistry = Depends(get_registry),
):
    """Create a talk; check-in starts closed."""
    try:
        session = await registry.create_session(
            title=payload.title,
            description=payload.description,
            starts_at=payload.start,
            ends_at=payload.end,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return to_result(session, registry.status_of(session))

@router.get("/sessions", response_model=List[SessionResult])
async def list_sessions(registry: SessionRegistry = Depends(get_registry)):
    """List talks with their status as of now."""
    sessions = await registry.list_sessions()
    return [to_result(session, session_status) for session, session_status in sessions]

@router.patch(
    "/sessions/{session_id}/toggle-checkin",
    response_model=SessionResult,
    responses={404: {"model": ErrorResponse}},
)
async def toggle_checkin(
    session_id: str,
    payload: GateToggle,
    registry: SessionRegistry = Depends(get_registry),
):
    """Start (enabled=true) or pause (enabled=false) check-in for a talk."""
    session = await registry.set_gate(session_id, payload.enabled)
    return to_result(session, registry.status_of(session))
