from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase

from checkin_service.domain.status import utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """Adds a server-side creation timestamp to a table."""

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
