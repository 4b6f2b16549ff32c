from checkin_service.domain.models import (
    Attendee,
    Card,
    Certificate,
    CheckinRecord,
    PresentAttendee,
    Session,
)
from checkin_service.domain.status import SessionStatus, derive_status, ensure_utc, utcnow

__all__ = [
    "Attendee",
    "Card",
    "Certificate",
    "CheckinRecord",
    "PresentAttendee",
    "Session",
    "SessionStatus",
    "derive_status",
    "ensure_utc",
    "utcnow",
]
