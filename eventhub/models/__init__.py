from .user import User
from .event import Event
from .rsvp import RSVP


__all__ = [
    "User",
    "Event",
    "RSVP",
]
