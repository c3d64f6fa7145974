from eventhub.services.reservation_service import (
    ReservationManager,
    ReservationServiceError,
    TransactionConflictError,
)


def test_rsvp_reserves_a_seat(client, login, make_user, make_event, seat_count):
    creator, guest = make_user(), make_user()
    event = make_event(creator, capacity=3)
    login(guest)

    response = client.post(f"/api/rsvp/{event.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully RSVP'd to the event"
    assert body["data"]["rsvp"]["event_id"] == event.id
    assert body["data"]["rsvp"]["user_id"] == guest.id
    assert body["data"]["rsvp"]["status"] == "attending"
    assert body["data"]["event"] == {
        "id": event.id,
        "title": "Community Jazz Night",
        "capacity": 3,
        "current_attendees": 1,
        "available_spots": 2,
    }
    assert seat_count(event.id) == 1


def test_rsvp_to_full_event(client, login, make_user, make_event, seat_count):
    creator, a, b = make_user(), make_user(), make_user()
    event = make_event(creator, capacity=1)

    login(a)
    assert client.post(f"/api/rsvp/{event.id}").status_code == 200

    login(b)
    response = client.post(f"/api/rsvp/{event.id}")

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["error_code"] == "CAPACITY_EXCEEDED"
    assert detail["available_spots"] == 0
    assert seat_count(event.id) == 1


def test_duplicate_rsvp(client, login, make_user, make_event, seat_count):
    creator, guest = make_user(), make_user()
    event = make_event(creator, capacity=5)
    login(guest)

    assert client.post(f"/api/rsvp/{event.id}").status_code == 200
    response = client.post(f"/api/rsvp/{event.id}")

    assert response.status_code == 400
    assert response.json()["detail"]["error_code"] == "DUPLICATE_RESERVATION"
    assert seat_count(event.id) == 1


def test_rsvp_to_missing_event(client, login, make_user):
    login(make_user())

    response = client.post("/api/rsvp/9999")

    assert response.status_code == 404
    assert response.json()["detail"]["error_code"] == "EVENT_NOT_FOUND"


def test_rsvp_requires_authentication(client, make_user, make_event):
    event = make_event(make_user())

    assert client.post(f"/api/rsvp/{event.id}").status_code == 401


def test_contention_maps_to_conflict(client, login, make_user, make_event, monkeypatch):
    creator, guest = make_user(), make_user()
    event = make_event(creator)
    login(guest)

    def busy(self, event_id, user_id):
        raise TransactionConflictError("The event is busy right now, please try again")

    monkeypatch.setattr(ReservationManager, "reserve_seat", busy)

    response = client.post(f"/api/rsvp/{event.id}")

    assert response.status_code == 409
    assert response.headers["Retry-After"] == "1"
    detail = response.json()["detail"]
    assert detail["error_code"] == "TRANSACTION_CONFLICT"
    assert detail["retryable"] is True


def test_cancel_rsvp(client, login, make_user, make_event, seat_count, rsvp_count):
    creator, guest = make_user(), make_user()
    event = make_event(creator, capacity=2)
    login(guest)
    client.post(f"/api/rsvp/{event.id}")

    response = client.delete(f"/api/rsvp/{event.id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "RSVP cancelled successfully"}
    assert seat_count(event.id) == 0
    assert rsvp_count(event.id) == 0

    again = client.delete(f"/api/rsvp/{event.id}")
    assert again.status_code == 404
    assert again.json()["detail"]["error_code"] == "RSVP_NOT_FOUND"
    assert seat_count(event.id) == 0


def test_my_rsvps_and_check(client, login, make_user, make_event):
    creator, guest = make_user(), make_user()
    attending = make_event(creator, title="Attending Event")
    other = make_event(creator, title="Other Event")
    login(guest)
    client.post(f"/api/rsvp/{attending.id}")

    mine = client.get("/api/rsvp/my-rsvps").json()
    assert mine["count"] == 1
    assert mine["data"][0]["event_id"] == attending.id
    assert mine["data"][0]["event"]["title"] == "Attending Event"
    assert mine["data"][0]["event"]["available_spots"] == 9

    checked = client.get(f"/api/rsvp/check/{attending.id}").json()["data"]
    assert checked["is_attending"] is True
    assert checked["rsvp"]["event_id"] == attending.id

    unchecked = client.get(f"/api/rsvp/check/{other.id}").json()["data"]
    assert unchecked == {"is_attending": False, "rsvp": None}


def test_attendees_visible_to_creator_only(client, login, make_user, make_event):
    creator, guest = make_user(), make_user(name="Sam Guest")
    event = make_event(creator)
    login(guest)
    client.post(f"/api/rsvp/{event.id}")

    forbidden = client.get(f"/api/rsvp/{event.id}/attendees")
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"]["error_code"] == "PERMISSION_DENIED"

    login(creator)
    response = client.get(f"/api/rsvp/{event.id}/attendees")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["user_name"] == "Sam Guest"
    assert body["data"][0]["status"] == "attending"


def test_storage_failure_maps_to_server_error(client, login, make_user, make_event, monkeypatch):
    creator, guest = make_user(), make_user()
    event = make_event(creator)
    login(guest)

    def broken(self, event_id, user_id):
        raise ReservationServiceError("Failed to reserve seat")

    monkeypatch.setattr(ReservationManager, "reserve_seat", broken)

    response = client.post(f"/api/rsvp/{event.id}")

    assert response.status_code == 500
    assert response.json()["detail"]["error_code"] == "RESERVATION_FAILED"
