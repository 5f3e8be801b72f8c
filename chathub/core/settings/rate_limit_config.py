"""Rate limit configuration."""

from pydantic import BaseModel


class RateLimitConfig(BaseModel, frozen=True):
    """slowapi limit strings (e.g. ``"20/minute"``)."""

    chat_stream: str
    upload: str
