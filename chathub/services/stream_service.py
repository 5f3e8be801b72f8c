"""Streaming assistant replies from the configured chat model."""

import json
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.core.exceptions import BadRequestError
from chathub.schemas.chat_schema import ChatStreamRequest, SaveMessageRequest, StreamEvent
from chathub.schemas.parts_schema import text_of
from chathub.services.chat_service import ChatService
from chathub.services.message_conversion import build_langchain_messages

logger = structlog.get_logger()

MODEL_ERROR_MESSAGE = "The model failed to produce a response."


@dataclass(frozen=True)
class PreparedStream:
    """Everything the stream needs once the store work is done."""

    chat_id: str
    assistant_message_id: str
    is_new_chat: bool
    first_text: str
    messages: list[BaseMessage]


def chunk_text(content: str | list[Any]) -> str:
    """Text carried by a streamed chunk; providers may send block lists."""
    if isinstance(content, str):
        return content
    pieces: list[str] = []
    for block in content:
        if isinstance(block, str):
            pieces.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            pieces.append(str(block.get("text", "")))
    return "".join(pieces)


class ChatStreamService:
    """Prepares a chat for a reply, then streams the model's tokens.

    All store access happens in :meth:`prepare`, before the response starts,
    so the generator never touches the request's database session. The
    assistant reply itself is persisted by the client once streaming ends.
    """

    def __init__(
        self,
        chat_service: ChatService,
        llm: BaseChatModel,
        session: AsyncSession,
        system_prompt: str,
    ) -> None:
        self._chat_service = chat_service
        self._llm = llm
        self._session = session
        self._system_prompt = system_prompt

    async def prepare(self, request: ChatStreamRequest) -> PreparedStream:
        """Create or authorize the chat, save the user turn, load history."""
        is_new_chat = False
        first_text = ""
        if request.message is None:
            # Regenerate: answer the stored transcript as it is.
            await self._chat_service.get_chat(request.chat_id)
        else:
            first_text = text_of(request.message.parts)
            _chat, is_new_chat = await self._chat_service.ensure_chat(
                request.chat_id, first_text
            )
            await self._chat_service.save_message(
                request.chat_id,
                SaveMessageRequest(
                    id=request.message.id,
                    role="user",
                    parts=request.message.parts,
                    attachment_ids=request.message.attachment_ids,
                ),
            )
        await self._session.commit()

        history = await self._chat_service.list_messages_for_model(request.chat_id)
        if not history:
            raise BadRequestError("No messages to respond to")

        return PreparedStream(
            chat_id=request.chat_id,
            assistant_message_id=request.assistant_message_id or str(uuid.uuid4()),
            is_new_chat=is_new_chat,
            first_text=first_text,
            messages=build_langchain_messages(
                history, self._system_prompt, request.tone, request.length
            ),
        )

    async def stream(self, prepared: PreparedStream) -> AsyncGenerator[StreamEvent, None]:
        """Yield ``start``, the ``token`` stream, then ``done`` or ``error``."""
        yield StreamEvent(
            event="start",
            data=json.dumps(
                {
                    "chat_id": prepared.chat_id,
                    "assistant_message_id": prepared.assistant_message_id,
                }
            ),
        )

        try:
            async for chunk in self._llm.astream(prepared.messages):
                text = chunk_text(chunk.content)
                if text:
                    yield StreamEvent(event="token", data=text)
        except Exception:
            logger.exception(
                "Model stream failed",
                chat_id=prepared.chat_id,
                assistant_message_id=prepared.assistant_message_id,
            )
            yield StreamEvent(event="error", data=MODEL_ERROR_MESSAGE)
            return

        yield StreamEvent(
            event="done",
            data=json.dumps(
                {
                    "chat_id": prepared.chat_id,
                    "assistant_message_id": prepared.assistant_message_id,
                    "is_new_chat": prepared.is_new_chat,
                }
            ),
        )
