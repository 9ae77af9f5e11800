"""
Event endpoints: listing, CRUD for organizers, and RSVP registration.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_identity
from app.core.security import Identity
from app.db.session import get_db
from app.schemas.event import (
    EventDetailResponse,
    EventEnvelope,
    EventListResponse,
    EventMutationResponse,
    EventResponse,
    MessageResponse,
)
from app.schemas.rsvp import RSVPCancelledResponse, RSVPCreatedResponse, RSVPResponse
from app.services import event_service, rsvp_service

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(
    filter_name: Optional[str] = Query(None, alias="filter", description="public, my-events or upcoming"),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    List events sorted by date.
    Unknown filter values return every event.
    """
    events = await event_service.list_events(db, filter_name, identity)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=len(events),
    )


@router.post("", response_model=EventMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: Any = Body(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Organizers only."""
    event = await event_service.create_event(db, payload, identity)
    await db.commit()
    return EventMutationResponse(
        message="Event created successfully",
        event=EventResponse.model_validate(event),
    )


@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event_endpoint(
    event_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get a single event with its attendees. Open to everyone."""
    event = await event_service.view_event(db, event_id, identity)
    return EventEnvelope(event=EventDetailResponse.model_validate(event))


@router.put("/{event_id}", response_model=EventMutationResponse)
async def update_event_endpoint(
    event_id: int,
    payload: Any = Body(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Update an event. Only its organizer may do this."""
    event = await event_service.update_event(db, event_id, payload, identity)
    await db.commit()
    return EventMutationResponse(
        message="Event updated successfully",
        event=EventResponse.model_validate(event),
    )


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event and all registrations for it."""
    await event_service.delete_event(db, event_id, identity)
    await db.commit()
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/rsvp", response_model=RSVPCreatedResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    event_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Register for an event.

    The place is claimed with a conditional update, so concurrent requests
    for the last place cannot both succeed.
    """
    rsvp = await rsvp_service.register(db, event_id, identity)
    await db.commit()
    return RSVPCreatedResponse(
        message="Successfully registered for event",
        rsvp=RSVPResponse.model_validate(rsvp),
        attendee_count=await rsvp_service.current_attendee_count(db, event_id),
    )


@router.delete("/{event_id}/rsvp", response_model=RSVPCancelledResponse)
async def cancel_endpoint(
    event_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the caller's registration for an event."""
    await rsvp_service.cancel(db, event_id, identity)
    await db.commit()
    return RSVPCancelledResponse(
        message="Successfully cancelled registration",
        attendee_count=await rsvp_service.current_attendee_count(db, event_id),
    )
