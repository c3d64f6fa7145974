from .constants import (
    AppConstants,
    ReservationConstants,
    ResponseMessages,
    PROTECTED_EVENT_FIELDS,
)

__all__ = [
    "AppConstants",
    "ReservationConstants",
    "ResponseMessages",
    "PROTECTED_EVENT_FIELDS",
]
