"""Unified API response schemas."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Error body; ``code`` is a ``kind:domain`` pair such as ``forbidden:chat``."""

    status: int
    message: str
    code: str


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope with status, message, and data (no code field)."""

    status: int = 200
    message: str = "Success"
    data: T | None = None


def success_response(data: T, status: int = 200, message: str = "Success") -> dict:
    """Build a success response dict for returning from endpoints."""
    return {"status": status, "message": message, "data": data}


def error_responses(*statuses: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries documenting the error body."""
    return {status: {"model": ErrorResponse} for status in statuses}
