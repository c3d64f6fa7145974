from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .enums import RSVPStatus

RSVP_UNIQUE_CONSTRAINT = "uq_rsvp_event_user"


class RSVP(Base):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String, nullable=False, default=RSVPStatus.ATTENDING.value)
    guests = Column(Integer, default=0)  # Extra people coming along, 0-10

    # Foreign Keys
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # One RSVP per user per event
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name=RSVP_UNIQUE_CONSTRAINT),
    )

    # Relationships
    event = relationship("Event", back_populates="rsvps")
    user = relationship("User", back_populates="event_rsvps", foreign_keys=[user_id])
