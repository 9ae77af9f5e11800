"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.db.base import as_utc
from app.schemas.base import RequestModel, ResponseModel
from app.schemas.user import UserPublic

# Fields an organizer may change after creation
UPDATABLE_FIELDS = ("title", "description", "date", "time", "location", "capacity", "is_public")


class EventCreate(RequestModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    date: datetime
    time: str = Field(..., min_length=1, max_length=50)
    location: str = Field(..., min_length=1, max_length=200)
    capacity: Optional[int] = Field(None, ge=1)
    is_public: bool = True

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventUpdate(RequestModel):
    """Partial update. Unknown keys are dropped; `capacity: null` means unlimited."""

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    date: Optional[datetime] = None
    time: Optional[str] = Field(None, min_length=1, max_length=50)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    capacity: Optional[int] = Field(None, ge=1)
    is_public: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "EventUpdate":
        for name in self.model_fields_set:
            if name != "capacity" and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return {
            name: getattr(self, name)
            for name in UPDATABLE_FIELDS
            if name in self.model_fields_set
        }


class EventResponse(ResponseModel):
    id: int
    title: str
    description: str
    date: datetime
    time: str
    location: str
    capacity: Optional[int]
    is_public: bool
    attendee_count: int
    organizer: UserPublic
    created_at: datetime
    updated_at: datetime

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventDetailResponse(EventResponse):
    attendees: list[UserPublic]


class EventListResponse(ResponseModel):
    events: list[EventResponse]
    total: int


class EventEnvelope(ResponseModel):
    event: EventDetailResponse


class EventMutationResponse(ResponseModel):
    message: str
    event: EventResponse


class MessageResponse(ResponseModel):
    message: str
