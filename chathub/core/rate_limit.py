"""Shared slowapi limiter."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from chathub.core.exceptions import ChatError, error_body


def rate_limit_key(request: Request) -> str:
    """Limit per session user; fall back to the client address."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=rate_limit_key)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Report an exhausted limit as ``rate_limit:chat``."""
    error = ChatError("rate_limit:chat")
    return JSONResponse(
        status_code=error.status_code,
        content=error_body(error.status_code, error.message, error.code),
    )
