"""
Event model.

Key design decisions:
- `attendee_count` is denormalized from the RSVP table so the capacity check
  and the claim of a place can be a single conditional UPDATE
- `capacity` NULL means unlimited; the CHECK constraint is the last line of
  defence against overbooking
- `attendees` is derived from attending RSVP rows, never stored separately
- Index on `date` for the upcoming/public listings
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(String(50), nullable=False)
    location = Column(String(200), nullable=False)
    capacity = Column(Integer, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    attendee_count = Column(Integer, nullable=False, default=0)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    organizer = relationship("User", lazy="joined")
    # Loaded explicitly (selectinload) where attendee details are needed
    rsvps = relationship("RSVP", viewonly=True, order_by="RSVP.created_at")

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity > 0", name="check_capacity_positive"),
        CheckConstraint("attendee_count >= 0", name="check_attendee_count_non_negative"),
        CheckConstraint(
            "capacity IS NULL OR attendee_count <= capacity",
            name="check_attendee_count_lte_capacity",
        ),
        Index("ix_events_date", "date"),
        Index("ix_events_public_date", "is_public", "date"),
    )

    @property
    def attendees(self) -> list:
        return [rsvp.user for rsvp in self.rsvps if rsvp.status == "attending"]

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, attendees={self.attendee_count}/{self.capacity})>"
