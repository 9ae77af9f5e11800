"""
RSVP service: registering for and cancelling attendance at events.

CONCURRENCY STRATEGY: Conditional Claim + Unique Constraint
===========================================================

Problem:
  Two users try to take the last place simultaneously.
  Both read attendee_count = capacity - 1, both insert an RSVP.
  Result: Overbooking.

Solution:
  Taking a place is a single conditional UPDATE:

    UPDATE events SET attendee_count = attendee_count + 1
    WHERE id = :event_id AND (capacity IS NULL OR attendee_count < capacity)

  The database evaluates the condition and the increment together, so only
  as many requests as there are free places get rows_affected == 1. The
  loser gets 0 and is told the event is full. Nothing is retried.

  The RSVP insert happens in the same transaction. The unique constraint
  on (event_id, user_id) rejects a racing duplicate from the same user;
  the IntegrityError becomes AlreadyRegistered and the request's session
  rolls back, releasing the claimed place.

  The CHECK constraint (attendee_count <= capacity) is the final safety net.

  The precondition reads before the claim exist to report the right error
  in the right order (past, full, duplicate); they are not what keeps the
  invariant.
"""

import time
from typing import Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from app.core.errors import (
    AlreadyRegistered,
    CapacityExceeded,
    EventInPast,
    NotFound,
    Unauthenticated,
)
from app.core.logging import get_logger
from app.core.metrics import (
    capacity_races_lost,
    record_rsvp_attempt,
    record_rsvp_cancellation,
    rsvp_latency,
)
from app.core.security import Identity
from app.db.base import as_utc, utcnow
from app.models.event import Event
from app.models.rsvp import RSVP, STATUS_ATTENDING

logger = get_logger(__name__)


async def claim_place(db: AsyncSession, event_id: int) -> bool:
    """
    Atomically add one attendee if the event still has room.
    Returns False when the event is full (or gone).
    """
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            or_(Event.capacity.is_(None), Event.attendee_count < Event.capacity),
        )
        .values(attendee_count=Event.attendee_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_place(db: AsyncSession, event_id: int) -> None:
    await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.attendee_count > 0)
        .values(attendee_count=Event.attendee_count - 1)
        .execution_options(synchronize_session=False)
    )


async def find_rsvp(db: AsyncSession, event_id: int, user_id: int) -> Optional[RSVP]:
    result = await db.execute(
        select(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
    )
    return result.scalar_one_or_none()


def _reject(result: str, exc: Exception, **context) -> Exception:
    record_rsvp_attempt(result)
    logger.info("rsvp_rejected", reason=result, **context)
    return exc


async def register(db: AsyncSession, event_id: int, requester: Optional[Identity]) -> RSVP:
    """
    Register the requester for an event.

    Checks, first failure wins: signed in, event exists, event not in the
    past, room left, not already registered.
    """
    started = time.perf_counter()
    try:
        if requester is None:
            raise _reject("unauthenticated", Unauthenticated(), event_id=event_id)

        result = await db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise _reject("not_found", NotFound("Event not found"), event_id=event_id)

        if as_utc(event.date) < utcnow():
            raise _reject("past", EventInPast(), event_id=event_id, user_id=requester.id)

        if event.capacity is not None and event.attendee_count >= event.capacity:
            raise _reject(
                "full",
                CapacityExceeded(),
                event_id=event_id,
                user_id=requester.id,
                capacity=event.capacity,
            )

        if await find_rsvp(db, event_id, requester.id) is not None:
            raise _reject("duplicate", AlreadyRegistered(), event_id=event_id, user_id=requester.id)

        if not await claim_place(db, event_id):
            capacity_races_lost.inc()
            raise _reject(
                "full",
                CapacityExceeded(),
                event_id=event_id,
                user_id=requester.id,
                lost_race=True,
            )

        rsvp = RSVP(event_id=event_id, user_id=requester.id, status=STATUS_ATTENDING)
        db.add(rsvp)
        try:
            await db.flush()
        except IntegrityError:
            # Same user registered concurrently; the session is rolled back
            # by the request scope, which also undoes the claim above.
            raise _reject(
                "duplicate", AlreadyRegistered(), event_id=event_id, user_id=requester.id
            ) from None

        record_rsvp_attempt("created")
        logger.info("rsvp_created", rsvp_id=rsvp.id, event_id=event_id, user_id=requester.id)
        return rsvp
    finally:
        rsvp_latency.observe(time.perf_counter() - started)


async def cancel(db: AsyncSession, event_id: int, requester: Optional[Identity]) -> None:
    """Remove the requester's RSVP for an event and free the place."""
    if requester is None:
        raise Unauthenticated()

    result = await db.execute(
        delete(RSVP)
        .where(RSVP.event_id == event_id, RSVP.user_id == requester.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        record_rsvp_cancellation("not_found")
        raise NotFound("RSVP not found")

    await release_place(db, event_id)

    record_rsvp_cancellation("cancelled")
    logger.info("rsvp_cancelled", event_id=event_id, user_id=requester.id)


async def current_attendee_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(select(Event.attendee_count).where(Event.id == event_id))
    return result.scalar_one_or_none() or 0


async def list_registrations(db: AsyncSession, requester: Optional[Identity]) -> list[RSVP]:
    """
    The requester's RSVPs with their events, newest first.
    The inner join drops RSVPs whose event no longer exists.
    """
    if requester is None:
        raise Unauthenticated()

    result = await db.execute(
        select(RSVP)
        .join(RSVP.event)
        .where(RSVP.user_id == requester.id)
        .options(contains_eager(RSVP.event).joinedload(Event.organizer))
        .order_by(RSVP.created_at.desc(), RSVP.id.desc())
    )
    return list(result.scalars().all())
