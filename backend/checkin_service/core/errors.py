"""Domain error codes for the check-in service."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    ATTENDEE_NOT_FOUND = "ATTENDEE_NOT_FOUND"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    CONFLICT = "CONFLICT"
    CHECKIN_NOT_ACTIVE = "CHECKIN_NOT_ACTIVE"
    DUPLICATE_CHECKIN = "DUPLICATE_CHECKIN"
    BATCH_FAILURE = "BATCH_FAILURE"
    CHANNEL_FAILURE = "CHANNEL_FAILURE"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class AttendeeNotFoundError(DomainError):
    """Raised when no attendee has the given registration number."""

    def __init__(self, reg_number: int) -> None:
        super().__init__(
            code=ErrorCode.ATTENDEE_NOT_FOUND,
            message="Attendee not found",
        )
        self.reg_number = reg_number


class CardNotFoundError(DomainError):
    """Raised when a card identifier is not bound to any attendee."""

    def __init__(self, card_identifier: str) -> None:
        super().__init__(
            code=ErrorCode.CARD_NOT_FOUND,
            message="Card is not registered",
        )
        self.card_identifier = card_identifier


class SessionNotFoundError(DomainError):
    """Raised when a session is not found."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session not found",
        )
        self.session_id = session_id


class NoActiveSessionError(DomainError):
    """Raised when no session currently accepts check-ins."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NO_ACTIVE_SESSION,
            message="No session is accepting check-ins",
        )


class ConflictError(DomainError):
    """Raised when a registration number or card identifier is already taken."""

    def __init__(self, message: str = "Attendee or card already registered") -> None:
        super().__init__(code=ErrorCode.CONFLICT, message=message)


class CheckinNotActiveError(DomainError):
    """Raised when the session gate is closed at check-in time."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.CHECKIN_NOT_ACTIVE,
            message="Check-in for this session is not active",
        )
        self.session_id = session_id


class DuplicateCheckinError(DomainError):
    """Raised when the attendee already checked in to the session."""

    def __init__(self, attendee_id: int, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_CHECKIN,
            message="Attendee already checked in to this session",
        )
        self.attendee_id = attendee_id
        self.session_id = session_id


class BatchFailureError(DomainError):
    """Raised when a certificate batch could not be committed."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.BATCH_FAILURE,
            message="Certificates could not be issued",
        )
        self.session_id = session_id


class ChannelFailureError(DomainError):
    """Raised when the card reader channel fails or cannot be opened."""

    def __init__(self, channel_id: str, reason: str = "") -> None:
        super().__init__(
            code=ErrorCode.CHANNEL_FAILURE,
            message="Card reader channel failure",
        )
        self.channel_id = channel_id
        self.reason = reason
