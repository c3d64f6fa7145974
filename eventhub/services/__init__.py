from .event_service import EventService
from .reservation_service import ReservationManager

__all__ = [
    "EventService",
    "ReservationManager",
]
