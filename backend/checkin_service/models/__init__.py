from checkin_service.models.attendee import Attendee, Card
from checkin_service.models.checkin import Certificate, Checkin
from checkin_service.models.talk_session import TalkSession

__all__ = ["Attendee", "Card", "Certificate", "Checkin", "TalkSession"]
