"""
Error taxonomy for the API.

Services raise these directly; each one is an HTTPException with a fixed
status code, so FastAPI renders them without extra plumbing. The handlers
installed by `install_exception_handlers` give validation failures an
itemized 400 body and turn anything unexpected into a logged, generic 500.
"""

from typing import Any, Iterable, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[Any] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else self.default_detail,
            headers=headers,
        )


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class AlreadyExists(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Already exists"


class AlreadyRegistered(AlreadyExists):
    default_detail = "You have already registered for this event"


class EventInPast(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Cannot RSVP to past events"


class CapacityExceeded(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Event is at full capacity"


class ValidationFailed(AppError):
    """400 carrying a list of `{"field": ..., "message": ...}` items."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation error"

    def __init__(self, errors: list[dict], detail: Optional[str] = None):
        super().__init__(detail)
        self.errors = errors

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationFailed":
        return cls(format_errors(exc.errors()))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls([{"field": field, "message": message}])


def format_errors(errors: Iterable[dict]) -> list[dict]:
    items = []
    for error in errors:
        # Drop the "body"/"query" location prefix FastAPI adds
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        items.append({
            "field": ".".join(loc) or None,
            "message": error.get("msg", "Invalid value"),
        })
    return items


def _validation_response(errors: list[dict]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ValidationFailed.default_detail, "errors": errors},
    )


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return _validation_response(exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _validation_response(format_errors(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", error_type=type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
