"""Application exception classes and handlers."""

from collections.abc import Callable, Coroutine
from typing import Any

import structlog
from fastapi import HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

logger = structlog.get_logger()

STATUS_BY_KIND: dict[str, int] = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "rate_limit": 429,
}

DEFAULT_MESSAGES: dict[str, str] = {
    "unauthorized:chat": "You need to sign in to continue.",
    "forbidden:chat": "This chat belongs to another user.",
    "not_found:chat": "The requested chat was not found.",
    "bad_request:chat": "The request couldn't be processed.",
    "bad_request:database": "An error occurred while executing a database query.",
    "rate_limit:chat": "You have exceeded your maximum number of messages.",
    "not_found:file": "The requested file was not found.",
    "bad_request:file": "The uploaded file couldn't be processed.",
}


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class ChatError(AppException):
    """Typed failure identified by a ``kind:domain`` code.

    ``ChatError("forbidden:chat")`` maps to HTTP 403 with the default message
    for that code; ``cause`` optionally overrides the message.
    """

    def __init__(self, code: str, cause: str | None = None) -> None:
        kind, _, domain = code.partition(":")
        if kind not in STATUS_BY_KIND or not domain:
            raise ValueError(f"Unknown error code: {code}")
        self.kind = kind
        self.domain = domain
        self.cause = cause
        message = cause or DEFAULT_MESSAGES.get(code, "Something went wrong.")
        super().__init__(
            message=message,
            code=code,
            status_code=STATUS_BY_KIND[kind],
        )


# --- Shorthands used by the authorization gate ---


class UnauthorizedError(ChatError):
    """No usable session on the request."""

    def __init__(self, cause: str | None = None) -> None:
        super().__init__("unauthorized:chat", cause)


class ForbiddenError(ChatError):
    """Valid session, but the caller does not own the chat."""

    def __init__(self, cause: str | None = None) -> None:
        super().__init__("forbidden:chat", cause)


class ChatNotFoundError(ChatError):
    """Chat does not exist."""

    def __init__(self, cause: str | None = None) -> None:
        super().__init__("not_found:chat", cause)


class MessageNotFoundError(ChatError):
    """Message does not exist in the addressed chat."""

    def __init__(self) -> None:
        super().__init__("not_found:chat", "Message not found")


class BadRequestError(ChatError):
    """Malformed input."""

    def __init__(self, cause: str | None = None) -> None:
        super().__init__("bad_request:chat", cause)


class DatabaseError(ChatError):
    """Unexpected store failure, normalized so internals do not leak."""

    def __init__(self, cause: str = "An unexpected error occurred") -> None:
        super().__init__("bad_request:database", cause)


# --- Exception Handlers ---


def error_body(status: int, message: str, code: str) -> dict:
    """JSON body shared by every error response."""
    return {"status": status, "message": message, "code": code}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body/query validation failures as ``bad_request:chat``."""
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in errors
    )
    return JSONResponse(
        status_code=400,
        content=error_body(400, detail or "Invalid request", "bad_request:chat"),
    )


class NormalizedErrorRoute(APIRoute):
    """Route class that downgrades unexpected exceptions to ``bad_request:database``.

    Known failures (``AppException``, ``HTTPException``, validation errors)
    pass through to their handlers untouched.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except (AppException, HTTPException, RequestValidationError):
                raise
            except Exception as exc:
                logger.exception(
                    "Unhandled error",
                    method=request.method,
                    path=request.url.path,
                    error_type=type(exc).__name__,
                )
                raise DatabaseError() from exc

        return route_handler
