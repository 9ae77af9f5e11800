from app.models.user import User
from app.models.event import Event
from app.models.rsvp import RSVP

__all__ = ["User", "Event", "RSVP"]
