# eventhub/routers/__init__.py

from . import auth
from . import event
from . import rsvp

__all__ = [
    "auth",
    "event",
    "rsvp",
]
