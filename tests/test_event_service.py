from datetime import datetime, timedelta

import pytest

from eventhub.models.event import Event
from eventhub.models.rsvp import RSVP
from eventhub.schemas.event import EventCreate, EventUpdate
from eventhub.services.event_service import (
    BusinessRuleViolationError,
    EventService,
    PermissionDeniedError,
)
from eventhub.services.reservation_service import EventNotFoundError, ReservationManager


def _event_payload(**overrides):
    payload = {
        "title": "Saturday Farmers Market",
        "description": "Local produce, bread and coffee from nearby farms.",
        "start_date": datetime.utcnow() + timedelta(days=3),
        "location": "Town Square",
        "category": "Food",
        "capacity": 50,
    }
    payload.update(overrides)
    return EventCreate(**payload)


def test_create_event_starts_with_no_attendees(db, make_user):
    creator = make_user()

    event = EventService(db).create_event(_event_payload(), created_by=creator.id)

    assert event.id is not None
    assert event.current_attendees == 0
    assert event.capacity == 50
    assert event.created_by == creator.id
    assert event.status == "upcoming"
    assert event.short_description == "Local produce, bread and coffee from nearby farms."


def test_create_event_truncates_long_short_description(db, make_user):
    creator = make_user()
    description = "A" * 400

    event = EventService(db).create_event(
        _event_payload(description=description), created_by=creator.id
    )

    assert len(event.short_description) == 200
    assert event.short_description.endswith("...")


def test_update_event_ignores_seat_fields(db, make_user, make_event):
    creator, guest = make_user(), make_user()
    event = make_event(creator, capacity=4)
    ReservationManager(db).reserve_seat(event.id, guest.id)

    updated = EventService(db).update_event(
        event.id,
        {"title": "Renamed Jazz Night", "current_attendees": 0, "capacity": 1},
        creator.id,
    )

    assert updated.title == "Renamed Jazz Night"
    assert updated.capacity == 4
    assert updated.current_attendees == 1


def test_update_event_accepts_schema_instance(db, make_user, make_event):
    creator = make_user()
    event = make_event(creator)

    updated = EventService(db).update_event(
        event.id, EventUpdate(location="Harbour Stage"), creator.id
    )

    assert updated.location == "Harbour Stage"
    assert updated.title == "Community Jazz Night"


def test_update_event_rederives_short_description(db, make_user, make_event):
    creator = make_user()
    event = make_event(creator)

    updated = EventService(db).update_event(
        event.id, {"description": "Brand new description text."}, creator.id
    )

    assert updated.short_description == "Brand new description text."


def test_update_event_requires_creator(db, make_user, make_event):
    creator, other = make_user(), make_user()
    event = make_event(creator)

    with pytest.raises(PermissionDeniedError):
        EventService(db).update_event(event.id, {"title": "Hijacked event"}, other.id)


def test_update_event_rejects_invalid_values(db, make_user, make_event):
    creator = make_user()
    event = make_event(creator)

    with pytest.raises(BusinessRuleViolationError):
        EventService(db).update_event(event.id, {"title": "x"}, creator.id)

    with pytest.raises(BusinessRuleViolationError):
        EventService(db).update_event(event.id, {"location": None}, creator.id)


def test_update_missing_event(db, make_user):
    creator = make_user()

    with pytest.raises(EventNotFoundError):
        EventService(db).update_event(9999, {"title": "Nobody home"}, creator.id)


def test_delete_event_removes_rsvps(db, make_user, make_event):
    creator, guest = make_user(), make_user()
    event = make_event(creator)
    ReservationManager(db).reserve_seat(event.id, guest.id)

    assert EventService(db).delete_event(event.id, creator.id) is True

    assert db.query(Event).filter(Event.id == event.id).first() is None
    assert db.query(RSVP).filter(RSVP.event_id == event.id).count() == 0


def test_delete_event_requires_creator(db, make_user, make_event):
    creator, other = make_user(), make_user()
    event = make_event(creator)

    with pytest.raises(PermissionDeniedError):
        EventService(db).delete_event(event.id, other.id)


def test_list_events_filters_and_paginates(db, make_user, make_event):
    creator = make_user()
    soon = datetime.utcnow() + timedelta(days=1)
    for i in range(5):
        make_event(creator, title=f"Morning Run {i}", category="Sports",
                   start_date=soon + timedelta(days=i))
    make_event(creator, title="Gallery Opening", category="Art")
    make_event(creator, title="Old Meetup", start_date=datetime.utcnow() - timedelta(days=2))

    service = EventService(db)

    sports = service.list_events(category="Sports", page=1, limit=2)
    assert [e.title for e in sports["events"]] == ["Morning Run 0", "Morning Run 1"]
    assert sports["pagination"] == {
        "current_page": 1,
        "page_size": 2,
        "total_items": 5,
        "total_pages": 3,
        "has_next": True,
        "has_previous": False,
    }

    last_page = service.list_events(category="Sports", page=3, limit=2)
    assert [e.title for e in last_page["events"]] == ["Morning Run 4"]
    assert last_page["pagination"]["has_next"] is False

    searched = service.list_events(search="gallery")
    assert [e.title for e in searched["events"]] == ["Gallery Opening"]

    past = service.list_events(status="past")
    assert [e.title for e in past["events"]] == ["Old Meetup"]

    upcoming = service.list_events()
    assert "Old Meetup" not in [e.title for e in upcoming["events"]]


def test_get_event_reports_attendance(db, make_user, make_event):
    creator, guest = make_user(), make_user()
    event = make_event(creator)
    ReservationManager(db).reserve_seat(event.id, guest.id)
    service = EventService(db)

    assert service.get_event(event.id, guest.id)["is_attending"] is True
    assert service.get_event(event.id, creator.id)["is_attending"] is False
    assert service.get_event(event.id)["is_attending"] is False


def test_user_event_lookups(db, make_user, make_event):
    creator, guest = make_user(), make_user()
    first = make_event(creator, title="First Event")
    second = make_event(creator, title="Second Event")
    ReservationManager(db).reserve_seat(second.id, guest.id)
    service = EventService(db)

    assert {e.id for e in service.get_user_events(creator.id)} == {first.id, second.id}
    assert [e.id for e in service.get_attending_events(guest.id)] == [second.id]
    assert [r.event_id for r in service.get_user_rsvps(guest.id)] == [second.id]
    assert service.get_user_rsvp(second.id, guest.id) is not None
    assert service.get_user_rsvp(first.id, guest.id) is None


def test_get_event_attendees_is_creator_only(db, make_user, make_event):
    creator, guest = make_user(name="Creator"), make_user(name="Ana Guest")
    event = make_event(creator)
    ReservationManager(db).reserve_seat(event.id, guest.id)
    service = EventService(db)

    attendees = service.get_event_attendees(event.id, creator.id)
    assert len(attendees) == 1
    assert attendees[0]["user_id"] == guest.id
    assert attendees[0]["user_name"] == "Ana Guest"
    assert attendees[0]["status"] == "attending"

    with pytest.raises(PermissionDeniedError):
        service.get_event_attendees(event.id, guest.id)
