from .common import PaginationInfo
from .event import EventCreate, EventUpdate, EventResponse, EventDetail
from .rsvp import RSVPResponse, ReservationResponse, RSVPCheckResponse
from .auth import LoginRequest, RegisterRequest, LoginResponse

__all__ = [
    "PaginationInfo",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventDetail",
    "RSVPResponse",
    "ReservationResponse",
    "RSVPCheckResponse",
    "LoginRequest",
    "RegisterRequest",
    "LoginResponse",
]
