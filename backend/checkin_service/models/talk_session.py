from sqlalchemy import Boolean, Column, DateTime, String, Text

from checkin_service.db.base import Base, TimestampMixin

class TalkSession(Base, TimestampMixin):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)

    # Check-in gate, flipped by organizers (start / pause)
    checkin_enabled = Column(Boolean, nullable=False, default=False)
    gate_changed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<TalkSession {self.id} ({self.title})>"
