from checkin_service.services.attendee_directory import AttendeeDirectory
from checkin_service.services.certificate_issuer import (
    CertificateIssuer,
    CertificateRenderer,
    PlaceholderRenderer,
)
from checkin_service.services.checkin_ledger import CheckinLedger
from checkin_service.services.session_registry import SessionRegistry

__all__ = [
    "AttendeeDirectory",
    "CertificateIssuer",
    "CertificateRenderer",
    "CheckinLedger",
    "PlaceholderRenderer",
    "SessionRegistry",
]
