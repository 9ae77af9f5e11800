"""
Maps a listing view name plus the caller's identity to a WHERE clause.

    public     -> public events dated now or later
    my-events  -> events the caller organizes (nothing when anonymous)
    upcoming   -> events dated now or later, public only when anonymous
    other/None -> every event
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, false, true
from sqlalchemy.sql.elements import ColumnElement

from app.core.security import Identity
from app.db.base import utcnow
from app.models.event import Event

FILTER_PUBLIC = "public"
FILTER_MY_EVENTS = "my-events"
FILTER_UPCOMING = "upcoming"


def build_query(
    filter_name: Optional[str],
    requester: Optional[Identity],
    now: Optional[datetime] = None,
) -> ColumnElement[bool]:
    now = now or utcnow()

    if filter_name == FILTER_PUBLIC:
        return and_(Event.is_public.is_(True), Event.date >= now)

    if filter_name == FILTER_MY_EVENTS:
        if requester is None:
            return false()
        return Event.organizer_id == requester.id

    if filter_name == FILTER_UPCOMING:
        if requester is None:
            return and_(Event.date >= now, Event.is_public.is_(True))
        return Event.date >= now

    return true()
