from app.schemas.user import UserCreate, UserResponse, UserLogin, UserPublic, Token
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventDetailResponse,
    EventListResponse,
)
from app.schemas.rsvp import RSVPResponse, RegistrationResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "UserPublic", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventDetailResponse", "EventListResponse",
    "RSVPResponse", "RegistrationResponse",
]
