from eventhub.models.enums import EventCategory, EventStatus
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Text,
    Boolean,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    short_description = Column(String(200))
    start_date = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=False)
    image_url = Column(String)
    category = Column(String, default=EventCategory.OTHER.value)
    status = Column(String, default=EventStatus.UPCOMING.value)
    is_featured = Column(Boolean, default=False)

    # Seat accounting. current_attendees is only ever written by ReservationManager
    capacity = Column(Integer, nullable=False)
    current_attendees = Column(Integer, nullable=False, default=0)

    created_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        CheckConstraint(
            "current_attendees >= 0", name="ck_events_attendees_non_negative"
        ),
        CheckConstraint(
            "current_attendees <= capacity", name="ck_events_attendees_lte_capacity"
        ),
        Index("ix_events_start_date", "start_date"),
        Index("ix_events_status", "status"),
        Index("ix_events_category", "category"),
    )

    # Relationships
    creator = relationship(
        "User", back_populates="created_events", foreign_keys=[created_by]
    )
    rsvps = relationship("RSVP", back_populates="event", cascade="all, delete-orphan")

    @property
    def available_spots(self) -> int:
        return max(0, self.capacity - (self.current_attendees or 0))

    @property
    def is_full(self) -> bool:
        return (self.current_attendees or 0) >= self.capacity

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, attendees={self.current_attendees}/{self.capacity})>"
