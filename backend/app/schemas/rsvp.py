"""
Pydantic schemas for RSVP responses and the registration listing.
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.db.base import as_utc
from app.schemas.base import ResponseModel


class RSVPResponse(ResponseModel):
    id: int
    event_id: int
    user_id: int
    status: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RSVPCreatedResponse(ResponseModel):
    message: str
    rsvp: RSVPResponse
    attendee_count: int


class RSVPCancelledResponse(ResponseModel):
    message: str
    attendee_count: int


class OrganizerContact(ResponseModel):
    name: str
    email: str


class RegisteredEvent(ResponseModel):
    id: int
    title: str
    description: str
    date: datetime
    time: str
    location: str
    capacity: Optional[int]
    is_public: bool
    organizer: OrganizerContact

    @field_validator("date")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RegistrationResponse(ResponseModel):
    id: int
    status: str
    event: RegisteredEvent
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RegistrationListResponse(ResponseModel):
    registrations: list[RegistrationResponse]
