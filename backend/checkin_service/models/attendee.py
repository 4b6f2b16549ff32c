from sqlalchemy import BigInteger, Column, Date, ForeignKey, String
from sqlalchemy.orm import relationship

from checkin_service.db.base import Base, TimestampMixin

class Attendee(Base, TimestampMixin):
    __tablename__ = "attendees"

    # Institutional registration number, assigned outside this system
    reg_number = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    program = Column(String, nullable=False)

    card = relationship("Card", back_populates="attendee", uselist=False)

    def __repr__(self):
        return f"<Attendee {self.reg_number} ({self.name})>"


class Card(Base, TimestampMixin):
    __tablename__ = "cards"

    card_identifier = Column(String, primary_key=True)
    attendee_id = Column(
        BigInteger,
        ForeignKey("attendees.reg_number"),
        unique=True,  # one card per attendee
        nullable=False,
    )
    issued_on = Column(Date, nullable=False)

    attendee = relationship("Attendee", back_populates="card")

    def __repr__(self):
        return f"<Card {self.card_identifier} -> {self.attendee_id}>"
