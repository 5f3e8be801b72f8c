"""Shared test helpers."""

import uuid
from collections.abc import Iterator
from datetime import timedelta
from itertools import cycle
from typing import Any

from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGenerationChunk
from pydantic import Field

from chathub.core.config import settings
from chathub.services.session_service import sign_session_token


def make_auth_headers(
    user_id: str = "user-1",
    is_anonymous: bool = False,
    expires_in: timedelta = timedelta(hours=1),
) -> dict[str, str]:
    """Authorization headers carrying a provider-style session token."""
    token = sign_session_token(
        settings.auth, user_id=user_id, is_anonymous=is_anonymous, expires_in=expires_in
    )
    return {"Authorization": f"Bearer {token}"}


def text_parts(text: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": text}]


def new_id() -> str:
    return str(uuid.uuid4())


def fake_llm_replying(*replies: str) -> GenericFakeChatModel:
    """Fake chat model answering with ``replies`` in order, then repeating them."""
    return GenericFakeChatModel(messages=cycle([AIMessage(content=r) for r in replies]))


class RecordingChatModel(GenericFakeChatModel):
    """Fake model that keeps the message lists it was asked to stream."""

    received: list[list[BaseMessage]] = Field(default_factory=list)

    def _stream(  # type: ignore[override]
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> Iterator[ChatGenerationChunk]:
        self.received.append(list(messages))
        yield from super()._stream(messages, stop=stop, run_manager=run_manager, **kwargs)


def recording_llm(*replies: str) -> RecordingChatModel:
    return RecordingChatModel(messages=cycle([AIMessage(content=r) for r in replies]))
