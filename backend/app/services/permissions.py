"""
Ownership rules for events.

Pure decisions: nothing here touches the database. Callers look the event
up first (404), then ask `ensure_can_modify`, which keeps "not signed in"
(401) and "not yours" (403) apart.
"""

from typing import Optional

from app.core.errors import Forbidden, Unauthenticated
from app.core.security import Identity
from app.models.event import Event


def can_modify(event: Event, requester: Optional[Identity]) -> bool:
    return requester is not None and requester.id == event.organizer_id


def can_view(event: Event, requester: Optional[Identity]) -> bool:
    # Any caller may fetch any event by id, private ones included.
    return True


def ensure_can_modify(event: Event, requester: Optional[Identity], action: str = "modify") -> None:
    if requester is None:
        raise Unauthenticated()
    if not can_modify(event, requester):
        raise Forbidden(f"Only the event organizer can {action} this event")
