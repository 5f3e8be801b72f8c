"""Chat repository for chat and message database operations."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.models.chat import Chat
from chathub.models.message import Message


class ChatRepository:
    """Encapsulates chat and message database queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Chats ---

    async def find_chat_by_id(self, chat_id: str) -> Chat | None:
        """Find a chat by its id."""
        result = await self._session.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def create_chat(
        self,
        user_id: str,
        title: str,
        chat_id: str | None = None,
    ) -> Chat:
        """Create a private chat, optionally under a pre-allocated id."""
        chat = Chat(user_id=user_id, title=title, visibility="private", pinned=False)
        if chat_id:
            chat.id = chat_id
        self._session.add(chat)
        await self._session.flush()
        await self._session.refresh(chat)
        return chat

    async def find_chats_by_user(self, user_id: str) -> list[Chat]:
        """List a user's chats, pinned first, then most recently updated."""
        result = await self._session.execute(
            select(Chat)
            .where(Chat.user_id == user_id)
            .order_by(Chat.pinned.desc(), Chat.updated_at.desc(), Chat.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_chat(self, chat: Chat, **values: Any) -> Chat:
        """Apply column values to a loaded chat and bump ``updated_at``."""
        for key, value in values.items():
            setattr(chat, key, value)
        chat.updated_at = datetime.now(UTC)
        await self._session.flush()
        await self._session.refresh(chat)
        return chat

    async def delete_chat(self, chat_id: str) -> None:
        """Delete a chat; messages and their files go with it via ON DELETE CASCADE."""
        await self._session.execute(delete(Chat).where(Chat.id == chat_id))

    # --- Messages ---

    async def find_messages_by_chat_id(self, chat_id: str) -> list[Message]:
        """Retrieve all messages of a chat in creation order."""
        result = await self._session.execute(
            select(Message).where(Message.chat_id == chat_id).order_by(Message.seq.asc())
        )
        return list(result.scalars().all())

    async def find_message_by_id(self, message_id: str) -> Message | None:
        """Find a message by its public id."""
        result = await self._session.execute(
            select(Message).where(Message.id == message_id)
        )
        return result.scalar_one_or_none()

    async def create_message(
        self,
        chat_id: str,
        role: str,
        parts: list[dict[str, Any]],
        content: str,
        message_id: str | None = None,
    ) -> Message:
        """Insert one message and bump the owning chat's ``updated_at``."""
        message = Message(chat_id=chat_id, role=role, parts=parts, content=content)
        if message_id:
            message.id = message_id
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)

        chat = await self.find_chat_by_id(chat_id)
        if chat is not None:
            chat.updated_at = datetime.now(UTC)
            await self._session.flush()
            await self._session.refresh(chat)
        return message

    async def update_message(
        self,
        message: Message,
        parts: list[dict[str, Any]],
        content: str,
    ) -> Message:
        """Replace a message's content and mark it edited."""
        message.parts = parts
        message.content = content
        message.is_edited = True
        message.updated_at = datetime.now(UTC)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def delete_message(self, message_id: str) -> None:
        """Hard-delete a single message."""
        await self._session.execute(delete(Message).where(Message.id == message_id))

    async def delete_messages_from_seq(self, chat_id: str, from_seq: int) -> int:
        """Hard-delete every message of a chat with ``seq >= from_seq`` in one statement."""
        result = await self._session.execute(
            delete(Message).where(
                Message.chat_id == chat_id,
                Message.seq >= from_seq,
            )
        )
        return result.rowcount or 0
