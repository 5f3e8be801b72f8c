"""Chat and message mutations behind the ownership gate."""

from collections import defaultdict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.core.exceptions import BadRequestError, ChatNotFoundError, UnauthorizedError
from chathub.models.chat import Chat
from chathub.models.stored_file import StoredFile
from chathub.repositories.chat_repo import ChatRepository
from chathub.repositories.file_repo import FileRepository
from chathub.schemas.chat_schema import (
    ChatDetailData,
    ChatListData,
    ChatResponse,
    MessageContentRequest,
    MessageListData,
    MessageResponse,
    SaveMessageRequest,
    TrailingDeleteData,
)
from chathub.schemas.parts_schema import dump_parts, text_of
from chathub.services.attachment_parts import AttachmentConverter, merge_attachment_parts
from chathub.services.authorization import ChatAuthorizer
from chathub.services.blob_storage import BlobStorage

logger = structlog.get_logger()

DEFAULT_CHAT_TITLE = "New Chat"
PROVISIONAL_TITLE_LENGTH = 50


def require_title(title: object) -> str:
    """Return the trimmed title or fail with ``bad_request:chat``."""
    if not isinstance(title, str) or not title.strip():
        raise BadRequestError("title is required")
    return title.strip()


def provisional_title(text: str) -> str:
    """Placeholder title from the first user text, until one is generated."""
    return text[:PROVISIONAL_TITLE_LENGTH].strip() or DEFAULT_CHAT_TITLE


class ChatService:
    """Orchestrates chat and message operations for one caller.

    ``user_id`` is ``None`` only for the public shared-chat read; every other
    operation rejects an anonymous call before touching the store.
    """

    def __init__(
        self,
        chat_repo: ChatRepository,
        file_repo: FileRepository,
        blob_storage: BlobStorage,
        session: AsyncSession,
        user_id: str | None,
    ) -> None:
        self._chat_repo = chat_repo
        self._file_repo = file_repo
        self._blob_storage = blob_storage
        self._session = session
        self._user_id = user_id
        self._authorizer = ChatAuthorizer(chat_repo)
        self._attachments = AttachmentConverter(blob_storage)

    def _require_user(self) -> str:
        if not self._user_id:
            raise UnauthorizedError()
        return self._user_id

    async def _owned_chat(self, chat_id: str) -> Chat:
        return await self._authorizer.verify_chat_ownership(chat_id, self._require_user())

    # --- Chats ---

    async def list_chats(self) -> ChatListData:
        """All chats of the caller, pinned first."""
        chats = await self._chat_repo.find_chats_by_user(self._require_user())
        return ChatListData(chats=[ChatResponse.model_validate(c) for c in chats])

    async def create_chat(self, title: object, chat_id: str | None = None) -> ChatResponse:
        """Create a chat owned by the caller."""
        user_id = self._require_user()
        clean_title = require_title(title)
        if chat_id and await self._chat_repo.find_chat_by_id(chat_id) is not None:
            raise BadRequestError("Chat id already in use")
        chat = await self._chat_repo.create_chat(user_id, clean_title, chat_id)
        logger.info("Chat created", chat_id=chat.id, user_id=user_id)
        return ChatResponse.model_validate(chat)

    async def ensure_chat(self, chat_id: str, first_text: str) -> tuple[ChatResponse, bool]:
        """Return the caller's chat, creating it on the first message.

        Returns:
            Tuple of (chat, is_new_chat).
        """
        user_id = self._require_user()
        existing = await self._chat_repo.find_chat_by_id(chat_id)
        if existing is None:
            chat = await self._chat_repo.create_chat(
                user_id, provisional_title(first_text), chat_id
            )
            logger.info("Chat created from first message", chat_id=chat_id, user_id=user_id)
            return ChatResponse.model_validate(chat), True
        chat = await self._owned_chat(chat_id)
        return ChatResponse.model_validate(chat), False

    async def get_chat(self, chat_id: str) -> ChatDetailData:
        """Chat with its full transcript."""
        chat = await self._owned_chat(chat_id)
        messages = await self._chat_repo.find_messages_by_chat_id(chat.id)
        return ChatDetailData(
            chat=ChatResponse.model_validate(chat),
            messages=[MessageResponse.model_validate(m) for m in messages],
        )

    async def get_shared_chat(self, chat_id: str) -> ChatDetailData:
        """Public read; private chats look exactly like missing ones."""
        chat = await self._chat_repo.find_chat_by_id(chat_id)
        if chat is None or not (chat.is_public or chat.user_id == self._user_id):
            raise ChatNotFoundError("Chat not found or access denied")
        messages = await self._chat_repo.find_messages_by_chat_id(chat.id)
        return ChatDetailData(
            chat=ChatResponse.model_validate(chat),
            messages=[MessageResponse.model_validate(m) for m in messages],
        )

    async def rename_chat(self, chat_id: str, title: object) -> ChatResponse:
        """Overwrite the title."""
        chat = await self._owned_chat(chat_id)
        clean_title = require_title(title)
        updated = await self._chat_repo.update_chat(chat, title=clean_title)
        return ChatResponse.model_validate(updated)

    async def toggle_pin(self, chat_id: str, pinned: object) -> ChatResponse:
        """Set the pin state; only a real boolean is accepted."""
        chat = await self._owned_chat(chat_id)
        if not isinstance(pinned, bool):
            raise BadRequestError("pinned must be a boolean")
        updated = await self._chat_repo.update_chat(chat, pinned=pinned)
        return ChatResponse.model_validate(updated)

    async def make_public(self, chat_id: str) -> ChatResponse:
        """Publish the chat. Publishing an already public chat changes nothing."""
        chat = await self._owned_chat(chat_id)
        if not chat.is_public:
            chat = await self._chat_repo.update_chat(chat, visibility="public")
            logger.info("Chat made public", chat_id=chat_id)
        return ChatResponse.model_validate(chat)

    async def delete_chat(self, chat_id: str) -> None:
        """Delete the chat, then remove its attachment payloads best-effort."""
        chat = await self._owned_chat(chat_id)
        files = await self._file_repo.find_by_chat_id(chat.id)
        await self._chat_repo.delete_chat(chat.id)
        await self._session.commit()
        logger.info("Chat deleted", chat_id=chat.id, files=len(files))
        await self._remove_payloads(chat.id, files)

    async def _remove_payloads(self, chat_id: str, files: list[StoredFile]) -> None:
        """Delete blobs whose rows are already gone; failures are only logged."""
        for stored in files:
            try:
                await self._blob_storage.delete(stored.url)
            except Exception:
                logger.exception(
                    "Failed to delete attachment payload",
                    chat_id=chat_id,
                    file_id=stored.id,
                )

    # --- Messages ---

    async def list_messages(self, chat_id: str) -> MessageListData:
        """Transcript of a chat in creation order."""
        chat = await self._owned_chat(chat_id)
        messages = await self._chat_repo.find_messages_by_chat_id(chat.id)
        return MessageListData(
            messages=[MessageResponse.model_validate(m) for m in messages]
        )

    async def list_messages_for_model(self, chat_id: str) -> list[MessageResponse]:
        """Transcript with each user turn's attachments folded into its parts."""
        history = (await self.list_messages(chat_id)).messages
        files = await self._file_repo.find_by_chat_id(chat_id)
        if not files:
            return history

        attached: dict[str, list[StoredFile]] = defaultdict(list)
        for stored in files:
            if stored.message_id:
                attached[stored.message_id].append(stored)

        result: list[MessageResponse] = []
        for message in history:
            if message.role != "user" or message.id not in attached:
                result.append(message)
                continue
            converted = await self._attachments.convert_all(attached[message.id])
            result.append(
                message.model_copy(
                    update={"parts": merge_attachment_parts(message.parts, converted)}
                )
            )
        return result

    async def save_message(
        self, chat_id: str, request: SaveMessageRequest
    ) -> MessageResponse:
        """Persist one message.

        A caller-supplied ``id`` becomes the message identity. Saving an id
        that already exists in this chat returns the stored message instead of
        inserting a duplicate.
        """
        chat = await self._owned_chat(chat_id)
        if request.id:
            existing = await self._chat_repo.find_message_by_id(request.id)
            if existing is not None:
                if existing.chat_id != chat.id:
                    raise BadRequestError("Message id belongs to another chat")
                logger.info("Message already saved", chat_id=chat.id, message_id=request.id)
                return MessageResponse.model_validate(existing)

        parts = request.resolved_parts
        message = await self._chat_repo.create_message(
            chat_id=chat.id,
            role=request.role,
            parts=dump_parts(parts),
            content=text_of(parts),
            message_id=request.id,
        )
        await self._file_repo.link_to_message(
            request.attachment_ids, self._require_user(), message.id
        )
        return MessageResponse.model_validate(message)

    async def update_message(
        self, chat_id: str, message_id: str, request: MessageContentRequest
    ) -> MessageResponse:
        """Replace a message's parts and mark it edited."""
        chat = await self._owned_chat(chat_id)
        message = await self._authorizer.verify_message_in_chat(chat, message_id)
        parts = request.resolved_parts
        updated = await self._chat_repo.update_message(
            message, parts=dump_parts(parts), content=text_of(parts)
        )
        return MessageResponse.model_validate(updated)

    async def delete_message(self, chat_id: str, message_id: str) -> None:
        """Delete one message."""
        chat = await self._owned_chat(chat_id)
        message = await self._authorizer.verify_message_in_chat(chat, message_id)
        files = await self._file_repo.find_by_message_ids([message.id])
        await self._chat_repo.delete_message(message.id)
        await self._session.commit()
        await self._remove_payloads(chat.id, files)

    async def delete_messages_after(self, chat_id: str, message_id: str) -> int:
        """Delete ``message_id`` and every later message of the chat.

        Messages before it are untouched. Returns the number of rows removed.
        """
        chat = await self._owned_chat(chat_id)
        message = await self._authorizer.verify_message_in_chat(chat, message_id)
        removed_ids = [
            m.id
            for m in await self._chat_repo.find_messages_by_chat_id(chat.id)
            if m.seq >= message.seq
        ]
        files = await self._file_repo.find_by_message_ids(removed_ids)
        deleted = await self._chat_repo.delete_messages_from_seq(chat.id, message.seq)
        await self._session.commit()
        logger.info(
            "Trailing messages deleted",
            chat_id=chat.id,
            from_message_id=message_id,
            deleted=deleted,
        )
        await self._remove_payloads(chat.id, files)
        return deleted

    async def delete_trailing_messages(self, message_id: str) -> TrailingDeleteData:
        """Regenerate/edit entry point addressed by message id alone."""
        chat, message = await self._authorizer.verify_message_ownership(
            message_id, self._require_user()
        )
        # Re-enter through the chat-scoped path so the gate runs for this chat id too.
        await self.delete_messages_after(chat.id, message.id)
        return TrailingDeleteData(chat_id=chat.id)
