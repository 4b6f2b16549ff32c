from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import date, datetime

from checkin_service.bridge.service import ConnectionState
from checkin_service.domain import SessionStatus, ensure_utc


class ApiModel(BaseModel):
    # camelCase on the wire, snake_case accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttendeeCreate(ApiModel):
    reg_number: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    program: str = Field(..., min_length=1)
    card_identifier: Optional[str] = Field(default=None, min_length=1)
    issuance_date: Optional[date] = None


class CardResult(ApiModel):
    card_identifier: str
    issuance_date: date


class AttendeeResult(ApiModel):
    reg_number: int
    name: str
    program: str
    card: CardResult


class SessionCreate(ApiModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_window(self):
        if ensure_utc(self.end) < ensure_utc(self.start):
            raise ValueError("end must not be before start")
        return self


class SessionResult(ApiModel):
    id: str
    title: str
    description: str
    start: datetime
    end: datetime
    checkin_enabled: bool
    status: SessionStatus


class GateToggle(ApiModel):
    enabled: bool


class CheckinCreate(ApiModel):
    attendee_id: int
    session_id: str


class CheckinResult(ApiModel):
    attendee_id: int
    session_id: str
    checked_in_at: datetime


class PresentAttendeeResult(ApiModel):
    reg_number: int
    name: str
    program: str
    checked_in_at: datetime


class CertificateIssueResult(ApiModel):
    issued: int
    message: str


class CertificateResult(ApiModel):
    attendee_id: int
    session_id: str
    issued_at: datetime
    size: int


class BridgeStatusResult(ApiModel):
    connected: bool
    channel_id: Optional[str] = None
    speed: Optional[int] = None
    state: ConnectionState
    last_error: Optional[str] = None
    scans_processed: int = 0
    reconnect_attempts: int = 0


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResult(BaseModel):
    status: str
    database: str
    bridge: ConnectionState
    service: str
