"""
RSVP model: one user's registration for one event.

Key design decisions:
- Unique constraint on (event_id, user_id) so a duplicate registration fails
  in the database even when two requests race past the application check
- ON DELETE CASCADE from events, so removing an event removes its RSVPs
- Only `attending` is created today; the other statuses are reserved
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

STATUS_ATTENDING = "attending"
STATUS_NOT_ATTENDING = "not_attending"
STATUS_MAYBE = "maybe"


class RSVP(Base, TimestampMixin):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_ATTENDING)

    # Relationships
    event = relationship("Event", viewonly=True)
    user = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),
        CheckConstraint(
            "status IN ('attending', 'not_attending', 'maybe')", name="check_rsvp_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<RSVP(id={self.id}, event={self.event_id}, user={self.user_id}, status={self.status})>"
