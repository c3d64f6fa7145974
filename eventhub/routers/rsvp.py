from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Dict, Any
from ..database import get_db
from ..dependencies.permissions import get_current_user
from ..models.user import User
from ..services.event_service import EventService
from ..services.reservation_service import ReservationManager
from ..schemas.event import EventResponse, SeatSummaryResponse
from ..schemas.rsvp import (
    AttendeeResponse,
    ReservationResponse,
    RSVPCheckResponse,
    RSVPResponse,
    RSVPWithEvent,
)
from ..utils.constants import ResponseMessages
from ..utils.router_helpers import handle_service_errors, RouterResponse

router = APIRouter(tags=["rsvp"])


def _reserve(db: Session, event_id: int, user_id: int) -> ReservationResponse:
    result = ReservationManager(db).reserve_seat(event_id, user_id)
    return ReservationResponse(
        rsvp=RSVPResponse.model_validate(result.rsvp),
        event=SeatSummaryResponse.model_validate(result.event),
    )


@router.get("/my-rsvps", response_model=Dict[str, Any])
@handle_service_errors
async def get_my_rsvps(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the current user's RSVPs with their events"""
    rsvps = EventService(db).get_user_rsvps(current_user.id)

    data = [
        RSVPWithEvent(
            **RSVPResponse.model_validate(rsvp).model_dump(),
            event=EventResponse.model_validate(rsvp.event) if rsvp.event else None,
        ).model_dump()
        for rsvp in rsvps
    ]
    return {"success": True, "count": len(data), "data": data}


@router.get("/check/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def check_rsvp(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Check whether the current user has RSVP'd to an event"""
    rsvp = EventService(db).get_user_rsvp(event_id, current_user.id)

    check = RSVPCheckResponse(
        is_attending=rsvp is not None,
        rsvp=RSVPResponse.model_validate(rsvp) if rsvp else None,
    )
    return RouterResponse.success(data=check.model_dump())


@router.post("/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def rsvp_to_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reserve a seat on an event"""
    reservation = await run_in_threadpool(_reserve, db, event_id, current_user.id)

    return RouterResponse.success(
        data=reservation.model_dump(), message=ResponseMessages.RSVP_CREATED
    )


@router.delete("/{event_id}", response_model=Dict[str, Any])
@handle_service_errors
async def cancel_rsvp(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Cancel the current user's RSVP and free the seat"""
    manager = ReservationManager(db)
    await run_in_threadpool(manager.release_seat, event_id, current_user.id)

    return RouterResponse.success(message=ResponseMessages.RSVP_CANCELLED)


@router.get("/{event_id}/attendees", response_model=Dict[str, Any])
@handle_service_errors
async def get_event_attendees(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get attendees of an event (event creator only)"""
    attendees = EventService(db).get_event_attendees(event_id, current_user.id)

    data = [AttendeeResponse(**attendee).model_dump() for attendee in attendees]
    return {"success": True, "count": len(data), "data": data}
