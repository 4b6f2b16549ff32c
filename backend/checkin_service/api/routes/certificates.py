from fastapi import APIRouter, Depends, status
from typing import List

from checkin_service.api.deps import get_issuer
from checkin_service.schemas import CertificateIssueResult, CertificateResult, ErrorResponse
from checkin_service.services import CertificateIssuer

router = APIRouter()

@router.post(
    "/sessions/{session_id}/certificates",
    response_model=CertificateIssueResult,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def issue_certificates(
    session_id: str,
    issuer: CertificateIssuer = Depends(get_issuer),
):
    """Issue certificates for every check-in of the talk that has none yet."""
    issued = await issuer.issue_certificates(session_id)
    if issued == 0:
        message = "No new certificates to issue"
    else:
        message = f"{issued} certificates issued"
    return CertificateIssueResult(issued=issued, message=message)

@router.get(
    "/sessions/{session_id}/certificates",
    response_model=List[CertificateResult],
    responses={404: {"model": ErrorResponse}},
)
async def list_certificates(
    session_id: str,
    issuer: CertificateIssuer = Depends(get_issuer),
):
    certificates = await issuer.list_certificates(session_id)
    return [
        CertificateResult(
            attendee_id=c.attendee_id,
            session_id=c.session_id,
            issued_at=c.issued_at,
            size=len(c.payload),
        )
        for c in certificates
    ]
