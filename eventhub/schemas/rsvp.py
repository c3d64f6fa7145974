from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from ..models.enums import RSVPStatus
from .event import EventResponse, SeatSummaryResponse


class RSVPResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    status: RSVPStatus
    guests: int = 0
    created_at: Optional[datetime]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RSVPWithEvent(RSVPResponse):
    event: Optional[EventResponse] = None


class ReservationResponse(BaseModel):
    rsvp: RSVPResponse
    event: SeatSummaryResponse

    class Config:
        from_attributes = True


class RSVPCheckResponse(BaseModel):
    is_attending: bool
    rsvp: Optional[RSVPResponse] = None


class AttendeeResponse(BaseModel):
    user_id: int
    user_name: str
    email: str
    avatar_url: Optional[str] = None
    status: RSVPStatus
    guests: int = Field(0, ge=0)
    responded_at: Optional[datetime] = None

