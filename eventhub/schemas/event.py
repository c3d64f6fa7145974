from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional
from datetime import datetime, timezone
from eventhub.models.enums import EventCategory, EventStatus
from eventhub.utils.constants import AppConstants


class EventBase(BaseModel):
    title: str = Field(
        ...,
        min_length=AppConstants.MIN_TITLE_LENGTH,
        max_length=AppConstants.MAX_TITLE_LENGTH,
    )
    description: str = Field(
        ...,
        min_length=AppConstants.MIN_DESCRIPTION_LENGTH,
        max_length=AppConstants.MAX_DESCRIPTION_LENGTH,
    )
    short_description: Optional[str] = Field(
        None, max_length=AppConstants.MAX_SHORT_DESCRIPTION_LENGTH
    )
    start_date: datetime
    location: str = Field(..., min_length=1, max_length=AppConstants.MAX_LOCATION_LENGTH)
    image_url: Optional[str] = None
    category: EventCategory = EventCategory.OTHER
    is_featured: bool = False

    @field_validator("start_date")
    @classmethod
    def normalize_start_date(cls, v):
        return to_naive_utc(v)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Event dates are stored as naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventCreate(EventBase):
    capacity: int = Field(
        ..., ge=AppConstants.MIN_CAPACITY, le=AppConstants.MAX_CAPACITY
    )


class EventUpdate(BaseModel):
    """Free-form event update.

    capacity and current_attendees are deliberately absent: seat accounting is
    owned by ReservationManager. Unknown keys are ignored.
    """

    title: Optional[str] = Field(
        None,
        min_length=AppConstants.MIN_TITLE_LENGTH,
        max_length=AppConstants.MAX_TITLE_LENGTH,
    )
    description: Optional[str] = Field(
        None,
        min_length=AppConstants.MIN_DESCRIPTION_LENGTH,
        max_length=AppConstants.MAX_DESCRIPTION_LENGTH,
    )
    short_description: Optional[str] = Field(
        None, max_length=AppConstants.MAX_SHORT_DESCRIPTION_LENGTH
    )
    start_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=AppConstants.MAX_LOCATION_LENGTH)
    image_url: Optional[str] = None
    category: Optional[EventCategory] = None
    status: Optional[EventStatus] = None
    is_featured: Optional[bool] = None

    @field_validator("start_date")
    @classmethod
    def normalize_start_date(cls, v):
        return to_naive_utc(v)


class EventResponse(EventBase):
    id: int
    capacity: int
    current_attendees: int
    status: EventStatus
    created_by: Optional[int]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    # COMPUTED FIELDS
    @computed_field
    @property
    def available_spots(self) -> int:
        return max(0, self.capacity - self.current_attendees)

    @computed_field
    @property
    def is_full(self) -> bool:
        """Check if event has reached capacity"""
        return self.current_attendees >= self.capacity

    @computed_field
    @property
    def days_until(self) -> int:
        """Days until event (negative if past)"""
        return (self.start_date - datetime.utcnow()).days

    class Config:
        from_attributes = True


class EventDetail(EventResponse):
    is_attending: bool = False


class SeatSummaryResponse(BaseModel):
    """Seat counts returned after a reservation"""

    id: int = Field(..., validation_alias="event_id")
    title: str
    capacity: int
    current_attendees: int
    available_spots: int

    class Config:
        from_attributes = True

