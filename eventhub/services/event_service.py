from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Dict, Any, Optional, Union
from datetime import datetime
from pydantic import ValidationError
import logging
import math

from ..models.event import Event
from ..models.rsvp import RSVP
from ..models.user import User
from ..models.enums import EventStatus, RSVPStatus
from ..schemas.event import EventCreate, EventUpdate
from ..utils.constants import AppConstants, PROTECTED_EVENT_FIELDS
from .reservation_service import EventNotFoundError

logger = logging.getLogger(__name__)


class EventServiceError(Exception):
    """Base exception for event service errors"""

    pass


class PermissionDeniedError(EventServiceError):
    """Permission denied for operation"""

    pass


class BusinessRuleViolationError(EventServiceError):
    """Business rule violation"""

    pass


SORTABLE_FIELDS = {
    "start_date": Event.start_date,
    "created_at": Event.created_at,
    "title": Event.title,
    "capacity": Event.capacity,
}


class EventService:
    def __init__(self, db: Session):
        self.db = db

    def create_event(self, event_data: EventCreate, created_by: int) -> Event:
        """Create a new event; seats always start empty"""

        short_description = event_data.short_description or self._derive_short_description(
            event_data.description
        )

        try:
            event = Event(
                title=event_data.title,
                description=event_data.description,
                short_description=short_description,
                start_date=event_data.start_date,
                location=event_data.location,
                capacity=event_data.capacity,
                current_attendees=0,
                image_url=event_data.image_url or AppConstants.DEFAULT_IMAGE_URL,
                category=event_data.category.value,
                is_featured=event_data.is_featured,
                status=EventStatus.UPCOMING.value,
                created_by=created_by,
            )

            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
            logger.info(f"User {created_by} created event {event.id}")
            return event

        except SQLAlchemyError as e:
            self.db.rollback()
            raise EventServiceError(f"Failed to create event: {str(e)}")

    def update_event(
        self,
        event_id: int,
        event_updates: Union[EventUpdate, Dict[str, Any]],
        updated_by: int,
    ) -> Event:
        """Update event fields; seat accounting fields are never writable here"""

        event = self._get_event_or_raise(event_id)

        if event.created_by != updated_by:
            raise PermissionDeniedError("Not authorized to update this event")

        if isinstance(event_updates, dict):
            event_updates = self._strip_protected_fields(event_id, event_updates)

        update_data = event_updates.model_dump(exclude_unset=True)

        if "short_description" not in update_data and "description" in update_data:
            update_data["short_description"] = self._derive_short_description(
                update_data["description"]
            )

        try:
            for field, value in update_data.items():
                if value is None and field in ("title", "description", "location", "start_date"):
                    raise BusinessRuleViolationError(f"{field} cannot be empty")
                setattr(event, field, value.value if hasattr(value, "value") else value)

            event.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(event)
            return event

        except BusinessRuleViolationError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise EventServiceError(f"Failed to update event: {str(e)}")

    def delete_event(self, event_id: int, deleted_by: int) -> bool:
        """Delete an event together with all of its RSVPs"""

        event = self._get_event_or_raise(event_id)

        if event.created_by != deleted_by:
            raise PermissionDeniedError("Not authorized to delete this event")

        try:
            # RSVPs go with the event through the relationship cascade
            self.db.delete(event)
            self.db.commit()
            logger.info(f"User {deleted_by} deleted event {event_id}")
            return True

        except SQLAlchemyError as e:
            self.db.rollback()
            raise EventServiceError(f"Failed to delete event: {str(e)}")

    def list_events(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = EventStatus.UPCOMING.value,
        sort: str = "start_date",
        order: str = "asc",
        page: int = AppConstants.DEFAULT_PAGE,
        limit: int = AppConstants.DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """List events with filtering and offset pagination"""

        now = datetime.utcnow()
        query = self.db.query(Event)

        if status == "past":
            query = query.filter(Event.start_date < now)
        elif status:
            query = query.filter(Event.status == status)
            if status == EventStatus.UPCOMING.value:
                query = query.filter(Event.start_date >= now)

        if category:
            query = query.filter(Event.category == category)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Event.title.ilike(pattern),
                    Event.description.ilike(pattern),
                    Event.location.ilike(pattern),
                )
            )

        sort_column = SORTABLE_FIELDS.get(sort, Event.start_date)
        query = query.order_by(
            sort_column.desc() if order == "desc" else sort_column.asc()
        )

        total = query.count()
        events = query.offset((page - 1) * limit).limit(limit).all()
        total_pages = math.ceil(total / limit) if limit else 0

        return {
            "events": events,
            "pagination": {
                "current_page": page,
                "page_size": limit,
                "total_items": total,
                "total_pages": total_pages,
                "has_next": page * limit < total,
                "has_previous": page > 1,
            },
        }

    def get_event(self, event_id: int, user_id: Optional[int] = None) -> Dict[str, Any]:
        """Get an event and whether the caller is attending it"""

        event = self._get_event_or_raise(event_id)

        is_attending = False
        if user_id is not None:
            is_attending = (
                self.db.query(RSVP)
                .filter(
                    and_(
                        RSVP.event_id == event_id,
                        RSVP.user_id == user_id,
                        RSVP.status == RSVPStatus.ATTENDING.value,
                    )
                )
                .first()
            ) is not None

        return {"event": event, "is_attending": is_attending}

    def get_user_events(self, user_id: int) -> List[Event]:
        """Events created by the user, newest first"""
        return (
            self.db.query(Event)
            .filter(Event.created_by == user_id)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .all()
        )

    def get_attending_events(self, user_id: int) -> List[Event]:
        """Events the user holds an attending RSVP for"""
        return (
            self.db.query(Event)
            .join(RSVP, RSVP.event_id == Event.id)
            .filter(
                and_(
                    RSVP.user_id == user_id,
                    RSVP.status == RSVPStatus.ATTENDING.value,
                )
            )
            .order_by(Event.start_date)
            .all()
        )

    def get_user_rsvps(self, user_id: int) -> List[RSVP]:
        """All RSVPs of the user, newest first"""
        return (
            self.db.query(RSVP)
            .filter(RSVP.user_id == user_id)
            .order_by(RSVP.created_at.desc(), RSVP.id.desc())
            .all()
        )

    def get_user_rsvp(self, event_id: int, user_id: int) -> Optional[RSVP]:
        return (
            self.db.query(RSVP)
            .filter(and_(RSVP.event_id == event_id, RSVP.user_id == user_id))
            .first()
        )

    def get_event_attendees(self, event_id: int, user_id: int) -> List[Dict[str, Any]]:
        """Attending RSVPs with user details; only the event creator may look"""

        event = self._get_event_or_raise(event_id)

        if event.created_by != user_id:
            raise PermissionDeniedError("Not authorized to view attendees")

        rows = (
            self.db.query(RSVP, User)
            .join(User, RSVP.user_id == User.id)
            .filter(
                and_(
                    RSVP.event_id == event_id,
                    RSVP.status == RSVPStatus.ATTENDING.value,
                )
            )
            .order_by(RSVP.created_at, RSVP.id)
            .all()
        )

        return [
            {
                "user_id": user.id,
                "user_name": user.name,
                "email": user.email,
                "avatar_url": user.avatar_url,
                "status": rsvp.status,
                "guests": rsvp.guests,
                "responded_at": rsvp.created_at,
            }
            for rsvp, user in rows
        ]

    @staticmethod
    def _strip_protected_fields(event_id: int, raw_updates: Dict[str, Any]) -> EventUpdate:
        """Drop denylisted fields from a free-form update, then validate the rest"""
        dropped = PROTECTED_EVENT_FIELDS & raw_updates.keys()
        if dropped:
            logger.warning(
                f"Ignoring protected fields {sorted(dropped)} in update of event {event_id}"
            )
        try:
            return EventUpdate.model_validate(
                {k: v for k, v in raw_updates.items() if k not in dropped}
            )
        except ValidationError as e:
            raise BusinessRuleViolationError(str(e)) from e

    def _get_event_or_raise(self, event_id: int) -> Event:
        event = self.db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise EventNotFoundError("Event not found")
        return event

    @staticmethod
    def _derive_short_description(description: Optional[str]) -> Optional[str]:
        if not description:
            return None
        limit = AppConstants.MAX_SHORT_DESCRIPTION_LENGTH - 3
        if len(description) <= limit:
            return description
        return description[:limit] + "..."
