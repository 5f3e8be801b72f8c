"""File repository for attachment records."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.models.message import Message
from chathub.models.stored_file import StoredFile


class FileRepository:
    """Encapsulates attachment record queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        user_id: str,
        name: str,
        url: str,
        media_type: str,
        size: int,
        file_id: str | None = None,
    ) -> StoredFile:
        """Create an attachment record not yet linked to a message."""
        stored = StoredFile(
            user_id=user_id, name=name, url=url, media_type=media_type, size=size
        )
        if file_id:
            stored.id = file_id
        self._session.add(stored)
        await self._session.flush()
        await self._session.refresh(stored)
        return stored

    async def find_by_id_for_user(self, file_id: str, user_id: str) -> StoredFile | None:
        """Find a file owned by ``user_id``."""
        result = await self._session.execute(
            select(StoredFile).where(
                StoredFile.id == file_id,
                StoredFile.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_chat_id(self, chat_id: str) -> list[StoredFile]:
        """Files linked to any message of a chat."""
        result = await self._session.execute(
            select(StoredFile)
            .join(Message, StoredFile.message_id == Message.id)
            .where(Message.chat_id == chat_id)
        )
        return list(result.scalars().all())

    async def find_by_message_ids(self, message_ids: list[str]) -> list[StoredFile]:
        """Files linked to any of the given messages."""
        if not message_ids:
            return []
        result = await self._session.execute(
            select(StoredFile).where(StoredFile.message_id.in_(message_ids))
        )
        return list(result.scalars().all())

    async def link_to_message(self, file_ids: list[str], user_id: str, message_id: str) -> None:
        """Attach the caller's uploaded files to a saved message."""
        if not file_ids:
            return
        result = await self._session.execute(
            select(StoredFile).where(
                StoredFile.id.in_(file_ids),
                StoredFile.user_id == user_id,
            )
        )
        for stored in result.scalars().all():
            stored.message_id = message_id
        await self._session.flush()

    async def delete(self, file_id: str) -> None:
        """Delete a file record."""
        await self._session.execute(delete(StoredFile).where(StoredFile.id == file_id))
