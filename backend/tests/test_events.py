"""
Tests for event endpoints: listing filters, creation and the owner-only
update/delete guard.
"""

import pytest
from datetime import datetime, timezone, timedelta
from httpx import AsyncClient
from sqlalchemy import delete, func, select

from app.core.errors import NotFound
from app.models.event import Event
from app.models.rsvp import RSVP
from app.services import event_service
from conftest import auth_headers_for, identity_for, stored_attendee_count


def _future(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _event_payload(**overrides) -> dict:
    payload = {
        "title": "Python Meetup",
        "description": "Monthly gathering",
        "date": _future(),
        "time": "19:00",
        "location": "Community Hall",
        "capacity": 50,
        "isPublic": True,
    }
    payload.update(overrides)
    return payload


# --- create ---------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, organizer, organizer_headers):
    """Organizer can create an event; it starts with no attendees."""
    response = await client.post("/api/v1/events", json=_event_payload(), headers=organizer_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Event created successfully"
    event = body["event"]
    assert event["title"] == "Python Meetup"
    assert event["capacity"] == 50
    assert event["isPublic"] is True
    assert event["attendeeCount"] == 0
    assert event["organizer"] == {
        "id": organizer.id,
        "name": "Olivia Organizer",
        "email": "organizer@example.com",
    }


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/events", json=_event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_as_attendee_forbidden(client: AsyncClient, attendee_headers):
    response = await client.post("/api/v1/events", json=_event_payload(), headers=attendee_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Only organizers can create events"


@pytest.mark.asyncio
async def test_create_event_past_date_is_accepted(client: AsyncClient, organizer_headers):
    """Any parseable date is accepted; only RSVPs are refused for past events."""
    response = await client.post(
        "/api/v1/events", json=_event_payload(date="2020-01-01T10:00:00Z"), headers=organizer_headers
    )
    assert response.status_code == 201
    assert response.json()["event"]["date"].startswith("2020-01-01")


@pytest.mark.asyncio
async def test_create_event_itemized_validation_errors(client: AsyncClient, organizer_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(title="", capacity=0),
        headers=organizer_headers,
    )
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"title", "capacity"} <= fields


# --- read -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    event = response.json()["event"]
    assert event["id"] == test_event.id
    assert event["title"] == "Test Meetup"
    assert event["attendees"] == []
    assert event["attendeeCount"] == 0
    assert "hashedPassword" not in event["organizer"]


@pytest.mark.asyncio
async def test_get_private_event_by_id_is_allowed(client: AsyncClient, private_event):
    """Fetching by id is open to anyone, private events included."""
    response = await client.get(f"/api/v1/events/{private_event.id}")
    assert response.status_code == 200
    assert response.json()["event"]["isPublic"] is False


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"


# --- list filters -----------------------------------------------------------

def _titles(response) -> list[str]:
    return [event["title"] for event in response.json()["events"]]


@pytest.mark.asyncio
async def test_list_without_filter_returns_everything(
    client: AsyncClient, test_event, past_event, private_event
):
    response = await client.get("/api/v1/events")
    assert response.status_code == 200
    assert response.json()["total"] == 3
    # Sorted by date ascending; the past event comes first
    assert _titles(response)[0] == "Yesterday's Talk"


@pytest.mark.asyncio
async def test_list_unknown_filter_returns_everything(
    client: AsyncClient, test_event, past_event, private_event
):
    response = await client.get("/api/v1/events?filter=bogus")
    assert response.json()["total"] == 3


@pytest.mark.asyncio
async def test_public_filter_excludes_past_and_private(
    client: AsyncClient, test_event, past_event, private_event
):
    response = await client.get("/api/v1/events?filter=public")
    assert _titles(response) == ["Test Meetup"]


@pytest.mark.asyncio
async def test_upcoming_filter_anonymous_sees_public_only(
    client: AsyncClient, test_event, past_event, private_event
):
    response = await client.get("/api/v1/events?filter=upcoming")
    assert _titles(response) == ["Test Meetup"]


@pytest.mark.asyncio
async def test_upcoming_filter_signed_in_includes_private(
    client: AsyncClient, attendee_headers, test_event, past_event, private_event
):
    response = await client.get("/api/v1/events?filter=upcoming", headers=attendee_headers)
    assert sorted(_titles(response)) == ["Team Offsite", "Test Meetup"]


@pytest.mark.asyncio
async def test_my_events_filter(
    client: AsyncClient, db_session, organizer_headers, other_organizer, test_event
):
    other = Event(
        title="Someone Else's Party",
        description="Not mine",
        date=datetime.now(timezone.utc) + timedelta(days=5),
        time="20:00",
        location="Elsewhere",
        organizer_id=other_organizer.id,
        attendee_count=0,
    )
    db_session.add(other)
    await db_session.commit()

    response = await client.get("/api/v1/events?filter=my-events", headers=organizer_headers)
    assert _titles(response) == ["Test Meetup"]


@pytest.mark.asyncio
async def test_my_events_filter_anonymous_is_empty(client: AsyncClient, test_event):
    response = await client.get("/api/v1/events?filter=my-events")
    assert response.status_code == 200
    assert response.json() == {"events": [], "total": 0}


# --- update -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_event(client: AsyncClient, organizer_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Renamed Meetup", "isPublic": False, "capacity": 10},
        headers=organizer_headers,
    )
    assert response.status_code == 200
    event = response.json()["event"]
    assert event["title"] == "Renamed Meetup"
    assert event["isPublic"] is False
    assert event["capacity"] == 10
    assert event["location"] == "Test Venue"


@pytest.mark.asyncio
async def test_update_ignores_fields_outside_whitelist(
    client: AsyncClient, organizer, organizer_headers, other_organizer, test_event
):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"organizerId": other_organizer.id, "attendeeCount": 99, "time": "20:30"},
        headers=organizer_headers,
    )
    assert response.status_code == 200
    event = response.json()["event"]
    assert event["organizer"]["id"] == organizer.id
    assert event["attendeeCount"] == 0
    assert event["time"] == "20:30"


@pytest.mark.asyncio
async def test_update_with_invalid_date_writes_nothing(
    client: AsyncClient, organizer_headers, test_event
):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Should Not Stick", "date": "not-a-date"},
        headers=organizer_headers,
    )
    assert response.status_code == 400
    assert any(error["field"] == "date" for error in response.json()["errors"])

    event = (await client.get(f"/api/v1/events/{test_event.id}")).json()["event"]
    assert event["title"] == "Test Meetup"


@pytest.mark.asyncio
async def test_update_capacity_below_attendees_rejected(
    client: AsyncClient, db_session, organizer_headers, attendee, second_attendee, test_event
):
    for user in (attendee, second_attendee):
        response = await client.post(
            f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers_for(user)
        )
        assert response.status_code == 201

    response = await client.put(
        f"/api/v1/events/{test_event.id}", json={"capacity": 1}, headers=organizer_headers
    )
    assert response.status_code == 400
    assert await stored_attendee_count(db_session, test_event.id) == 2

    event = (await client.get(f"/api/v1/events/{test_event.id}")).json()["event"]
    assert event["capacity"] is None


@pytest.mark.asyncio
async def test_update_by_other_organizer_forbidden(
    client: AsyncClient, other_organizer, test_event
):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Hijacked"},
        headers=auth_headers_for(other_organizer),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_unauthenticated(client: AsyncClient, test_event):
    response = await client.put(f"/api/v1/events/{test_event.id}", json={"title": "Anon"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_missing_event(client: AsyncClient, organizer_headers):
    response = await client.put(
        "/api/v1/events/99999", json={"title": "Ghost"}, headers=organizer_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_checks_ownership_before_body(
    client: AsyncClient, attendee_headers, test_event
):
    """A non-owner gets 403 even when the body is invalid."""
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"date": "garbage"},
        headers=attendee_headers,
    )
    assert response.status_code == 403


# --- delete -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_event_cascades_rsvps(
    client: AsyncClient, db_session, organizer_headers, attendee, attendee_headers, test_event
):
    event_id = test_event.id
    await client.post(f"/api/v1/events/{event_id}/rsvp", headers=attendee_headers)

    response = await client.delete(f"/api/v1/events/{event_id}", headers=organizer_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Event deleted successfully"

    remaining = await db_session.execute(
        select(func.count()).select_from(RSVP).where(RSVP.event_id == event_id)
    )
    assert remaining.scalar_one() == 0

    assert (await client.get(f"/api/v1/events/{event_id}")).status_code == 404

    registrations = await client.get("/api/v1/user/registrations", headers=attendee_headers)
    assert registrations.status_code == 200
    assert registrations.json()["registrations"] == []


@pytest.mark.asyncio
async def test_delete_by_other_user_forbidden(client: AsyncClient, attendee_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=attendee_headers)
    assert response.status_code == 403
    assert (await client.get(f"/api/v1/events/{test_event.id}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_unauthenticated(client: AsyncClient, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete_missing_event(client: AsyncClient, organizer_headers):
    response = await client.delete("/api/v1/events/99999", headers=organizer_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_event_deleted_midway_is_not_found(
    db_session, organizer, test_event, monkeypatch
):
    """An event removed between lookup and write is reported missing, not as a bad capacity."""
    original_get_event = event_service.get_event
    calls = []

    async def get_then_delete(db, event_id, with_attendees=False):
        event = await original_get_event(db, event_id, with_attendees)
        if not calls:
            await db.execute(delete(Event).where(Event.id == event_id))
        calls.append(event_id)
        return event

    monkeypatch.setattr(event_service, "get_event", get_then_delete)

    with pytest.raises(NotFound):
        await event_service.update_event(
            db_session, test_event.id, {"title": "Too Late"}, identity_for(organizer)
        )
    await db_session.rollback()


@pytest.mark.asyncio
async def test_capacity_update_on_deleted_event_is_not_found(
    db_session, organizer, test_event, monkeypatch
):
    original_get_event = event_service.get_event
    calls = []

    async def get_then_delete(db, event_id, with_attendees=False):
        if calls:
            return await original_get_event(db, event_id, with_attendees)
        calls.append(event_id)
        event = await original_get_event(db, event_id, with_attendees)
        await db.execute(delete(Event).where(Event.id == event_id))
        return event

    monkeypatch.setattr(event_service, "get_event", get_then_delete)

    with pytest.raises(NotFound):
        await event_service.update_event(
            db_session, test_event.id, {"capacity": 5}, identity_for(organizer)
        )
    await db_session.rollback()


@pytest.mark.asyncio
async def test_get_event_goes_through_view_policy(client: AsyncClient, test_event, monkeypatch):
    """The single-event read asks the view policy; a refusal looks like a missing event."""
    seen = []

    def deny(event, requester):
        seen.append((event.id, requester))
        return False

    monkeypatch.setattr(event_service, "can_view", deny)

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"
    assert seen == [(test_event.id, None)]
