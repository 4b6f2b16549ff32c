from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, ForeignKeyConstraint, LargeBinary, String

from checkin_service.db.base import Base

class Checkin(Base):
    __tablename__ = "checkins"

    # Composite key: at most one check-in per attendee per session
    attendee_id = Column(BigInteger, ForeignKey("attendees.reg_number"), primary_key=True)
    session_id = Column(String(36), ForeignKey("sessions.id"), primary_key=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<Checkin {self.attendee_id}@{self.session_id}>"


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        ForeignKeyConstraint(
            ["attendee_id", "session_id"],
            ["checkins.attendee_id", "checkins.session_id"],
        ),
    )

    attendee_id = Column(BigInteger, primary_key=True)
    session_id = Column(String(36), primary_key=True)
    payload = Column(LargeBinary, nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Certificate {self.attendee_id}@{self.session_id}>"
