from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from ..database import get_db
from ..dependencies.permissions import get_current_user, get_optional_user
from ..models.enums import EventCategory
from ..models.user import User
from ..services.event_service import EventService
from ..schemas.common import PaginationInfo
from ..schemas.event import EventCreate, EventDetail, EventResponse
from ..utils.constants import AppConstants
from ..utils.router_helpers import handle_service_errors, RouterResponse

router = APIRouter(tags=["events"])


def _dump_events(events) -> list:
    return [EventResponse.model_validate(event).model_dump() for event in events]


@router.get("/", response_model=Dict[str, Any])
@handle_service_errors
async def get_events(
    category: Optional[EventCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    status_filter: Optional[str] = Query(
        "upcoming", alias="status", description="upcoming, ongoing, completed, cancelled or past"
    ),
    sort: str = Query("start_date"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(AppConstants.DEFAULT_PAGE, ge=1),
    limit: int = Query(
        AppConstants.DEFAULT_PAGE_SIZE, ge=1, le=AppConstants.MAX_PAGE_SIZE
    ),
    db: Session = Depends(get_db),
):
    """List events"""
    result = EventService(db).list_events(
        category=category.value if category else None,
        search=search,
        status=status_filter,
        sort=sort,
        order=order,
        page=page,
        limit=limit,
    )

    return {
        "success": True,
        "message": "Events retrieved successfully",
        "data": _dump_events(result["events"]),
        "pagination": PaginationInfo(**result["pagination"]).model_dump(),
    }


@router.post("/", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a new event"""
    event = EventService(db).create_event(event_data, created_by=current_user.id)

    return RouterResponse.created(
        data=EventResponse.model_validate(event).model_dump(),
        message="Event created successfully",
    )


@router.get("/user/my-events", response_model=Dict[str, Any])
@handle_service_errors
async def get_my_events(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get events created by the current user"""
    events = EventService(db).get_user_events(current_user.id)
    return {"success": True, "count": len(events), "data": _dump_events(events)}


@router.get("/user/attending", response_model=Dict[str, Any])
@handle_service_errors
async def get_attending_events(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get events the current user is attending"""
    events = EventService(db).get_attending_events(current_user.id)
    return {"success": True, "count": len(events), "data": _dump_events(events)}


@router.get("/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Get a single event"""
    result = EventService(db).get_event(
        event_id, user_id=current_user.id if current_user else None
    )

    detail = EventDetail.model_validate(result["event"])
    detail.is_attending = result["is_attending"]
    return RouterResponse.success(data=detail.model_dump())


@router.put("/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def update_event(
    event_id: int,
    event_updates: Dict[str, Any] = Body(..., examples=[{"title": "Rooftop Jazz Night"}]),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update an event (creator only); seat counts cannot be set here"""
    event = EventService(db).update_event(event_id, event_updates, current_user.id)

    return RouterResponse.success(
        data=EventResponse.model_validate(event).model_dump(),
        message="Event updated successfully",
    )


@router.delete("/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete an event and its RSVPs (creator only)"""
    EventService(db).delete_event(event_id, current_user.id)
    return RouterResponse.deleted(message="Event deleted successfully")
