"""
Event service: listing, lookup and the organizer-only mutations.

Request bodies for create/update arrive as plain dicts and are validated
here, after the identity and ownership checks, so the caller sees 401, 404,
403 and 400 in that order regardless of what the body contains.
"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import Forbidden, NotFound, Unauthenticated, ValidationFailed
from app.core.logging import get_logger
from app.core.metrics import record_event_mutation
from app.core.security import Identity
from app.db.base import utcnow
from app.models.event import Event
from app.models.rsvp import RSVP
from app.models.user import ROLE_ORGANIZER
from app.schemas.event import EventCreate, EventUpdate
from app.services.event_filters import build_query
from app.services.permissions import can_view, ensure_can_modify

logger = get_logger(__name__)


def _validate(schema, payload: Any):
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from None


async def get_event(db: AsyncSession, event_id: int, with_attendees: bool = False) -> Event:
    """Get a single event by ID, always re-read from the database."""
    query = (
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    if with_attendees:
        query = query.options(selectinload(Event.rsvps))

    result = await db.execute(query)
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound("Event not found")
    return event


async def view_event(db: AsyncSession, event_id: int, requester: Optional[Identity]) -> Event:
    """An event with its attendees, as seen by the requester."""
    event = await get_event(db, event_id, with_attendees=True)
    if not can_view(event, requester):
        raise NotFound("Event not found")
    return event


async def list_events(
    db: AsyncSession,
    filter_name: Optional[str],
    requester: Optional[Identity],
) -> list[Event]:
    """Events matching the named view, soonest first."""
    query = (
        select(Event)
        .where(build_query(filter_name, requester))
        .order_by(Event.date.asc(), Event.id.asc())
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_event(db: AsyncSession, payload: Any, requester: Optional[Identity]) -> Event:
    """Create an event owned by the requesting organizer."""
    if requester is None:
        raise Unauthenticated()
    if requester.role != ROLE_ORGANIZER:
        raise Forbidden("Only organizers can create events")

    event_data = _validate(EventCreate, payload)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=event_data.date,
        time=event_data.time,
        location=event_data.location,
        capacity=event_data.capacity,
        is_public=event_data.is_public,
        attendee_count=0,
        organizer_id=requester.id,
    )
    db.add(event)
    await db.flush()

    record_event_mutation("create")
    logger.info("event_created", event_id=event.id, organizer_id=requester.id, capacity=event.capacity)
    return await get_event(db, event.id)


async def update_event(
    db: AsyncSession,
    event_id: int,
    payload: Any,
    requester: Optional[Identity],
) -> Event:
    """
    Apply a partial update from the event's organizer.

    Validation happens before any write, so a bad field rejects the whole
    update. A new capacity must still fit the current attendees; that
    condition rides on the UPDATE itself so a registration committing in
    between cannot slip past it.
    """
    if requester is None:
        raise Unauthenticated()
    event = await get_event(db, event_id)
    ensure_can_modify(event, requester, "update")

    changes = _validate(EventUpdate, payload).changes()
    if changes:
        statement = update(Event).where(Event.id == event_id)
        new_capacity = changes.get("capacity")
        if new_capacity is not None:
            statement = statement.where(Event.attendee_count <= new_capacity)

        result = await db.execute(statement.values(**changes, updated_at=utcnow()))
        if result.rowcount == 0:
            if new_capacity is None:
                raise NotFound("Event not found")
            # Gone, or the new capacity no longer fits the attendees
            await get_event(db, event_id)
            raise ValidationFailed.single(
                "capacity", "Capacity cannot be less than the current number of attendees"
            )

    record_event_mutation("update")
    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return await get_event(db, event_id)


async def delete_event(db: AsyncSession, event_id: int, requester: Optional[Identity]) -> None:
    """Delete an event and every RSVP pointing at it, in one transaction."""
    if requester is None:
        raise Unauthenticated()
    event = await get_event(db, event_id)
    ensure_can_modify(event, requester, "delete")

    removed = await db.execute(delete(RSVP).where(RSVP.event_id == event_id))
    await db.execute(delete(Event).where(Event.id == event_id))

    record_event_mutation("delete")
    logger.info("event_deleted", event_id=event_id, rsvps_removed=removed.rowcount)
