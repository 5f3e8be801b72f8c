"""Ownership and authorization gate shared by every chat-scoped entry point.

The gate runs three steps, independently at each entry point:

1. resolve the caller from the request's session (``unauthorized:chat``);
2. load the target chat by id (``not_found:chat``);
3. compare the chat owner to the caller (``forbidden:chat``).

A chat validated earlier in the same call chain is never trusted; every
operation that receives a chat id re-runs steps 2 and 3.
"""

import structlog
from fastapi import Request
from pydantic import BaseModel, ConfigDict

from chathub.core.exceptions import (
    ChatNotFoundError,
    ForbiddenError,
    MessageNotFoundError,
    UnauthorizedError,
)
from chathub.models.chat import Chat
from chathub.models.message import Message
from chathub.repositories.chat_repo import ChatRepository

logger = structlog.get_logger()


class CurrentUser(BaseModel):
    """Authenticated caller extracted from request state."""

    model_config = ConfigDict(frozen=True)

    id: str
    is_anonymous: bool = False


def resolve_caller(request: Request) -> CurrentUser:
    """Step 1: the session middleware's resolved identity, or ``unauthorized:chat``."""
    state = getattr(request, "state", None)
    user_id = getattr(state, "user_id", None) if state else None
    if not user_id:
        raise UnauthorizedError()
    return CurrentUser(
        id=user_id,
        is_anonymous=bool(getattr(state, "is_anonymous", False)),
    )


class ChatAuthorizer:
    """Steps 2 and 3 of the gate, plus message-to-chat membership."""

    def __init__(self, chat_repo: ChatRepository) -> None:
        self._chat_repo = chat_repo

    async def verify_chat_ownership(self, chat_id: str, user_id: str) -> Chat:
        """Return the chat if ``user_id`` owns it."""
        chat = await self._chat_repo.find_chat_by_id(chat_id)
        if chat is None:
            raise ChatNotFoundError()
        if chat.user_id != user_id:
            logger.warning(
                "Chat ownership check failed", chat_id=chat_id, user_id=user_id
            )
            raise ForbiddenError()
        return chat

    async def verify_message_in_chat(self, chat: Chat, message_id: str) -> Message:
        """Return the message if it belongs to ``chat``."""
        message = await self._chat_repo.find_message_by_id(message_id)
        if message is None or message.chat_id != chat.id:
            raise MessageNotFoundError()
        return message

    async def verify_message_ownership(
        self, message_id: str, user_id: str
    ) -> tuple[Chat, Message]:
        """Resolve a message's chat and check that ``user_id`` owns it."""
        message = await self._chat_repo.find_message_by_id(message_id)
        if message is None:
            raise MessageNotFoundError()
        chat = await self.verify_chat_ownership(message.chat_id, user_id)
        return chat, message
