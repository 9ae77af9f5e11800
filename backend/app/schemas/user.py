"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import RequestModel, ResponseModel


class UserCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=60)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Literal["organizer", "attendee"] = "attendee"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(RequestModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserResponse(ResponseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: datetime


class UserPublic(ResponseModel):
    """What other users may see: never the password hash or role."""

    id: int
    name: str
    email: str


class Token(ResponseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    name: str
