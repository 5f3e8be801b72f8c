"""One open chat on the client: transcript, streaming and edits."""

import uuid
from collections.abc import Sequence

import structlog

from chathub.client.api import ChatAPIClient, event_payload
from chathub.client.cache import QueryCache, chat_keys
from chathub.client.commands import CommandLog
from chathub.client.models import LocalMessage
from chathub.client.sync import ChatSync
from chathub.core.exceptions import ChatError
from chathub.schemas.chat_schema import ChatDetailData, ChatResponse, Length, Tone
from chathub.schemas.parts_schema import ContentPart, TextPart

logger = structlog.get_logger()


class StreamFailedError(Exception):
    """The server reported an ``error`` event instead of finishing the reply."""


class ChatSession:
    """Client-side state of a single chat.

    Streams replies into the local transcript and hands finished replies to
    :class:`ChatSync`. Regenerate and edit wait for the durable trailing
    deletion before touching local state.
    """

    def __init__(
        self,
        api: ChatAPIClient,
        cache: QueryCache,
        chat_id: str | None = None,
        messages: Sequence[LocalMessage] = (),
        tone: Tone = "neutral",
        length: Length = "auto",
        commands: CommandLog | None = None,
    ) -> None:
        self.chat_id = chat_id or str(uuid.uuid4())
        self.messages: list[LocalMessage] = list(messages)
        self.tone: Tone = tone
        self.length: Length = length
        self._api = api
        self._cache = cache
        self._commands = commands or CommandLog()
        self.sync = ChatSync(self.chat_id, api, cache, stored=self.messages)

    @classmethod
    async def open(
        cls,
        api: ChatAPIClient,
        cache: QueryCache,
        chat_id: str,
        tone: Tone = "neutral",
        length: Length = "auto",
        commands: CommandLog | None = None,
    ) -> "ChatSession":
        """Load a stored chat through the cache."""
        detail: ChatDetailData = await cache.fetch(
            chat_keys.detail(chat_id), lambda: api.get_chat(chat_id)
        )
        messages = [LocalMessage.from_stored(m) for m in detail.messages]
        return cls(
            api,
            cache,
            chat_id=chat_id,
            messages=messages,
            tone=tone,
            length=length,
            commands=commands,
        )

    @classmethod
    async def create(
        cls,
        api: ChatAPIClient,
        cache: QueryCache,
        title: str,
        chat_id: str | None = None,
        tone: Tone = "neutral",
        length: Length = "auto",
        commands: CommandLog | None = None,
    ) -> "ChatSession":
        """Create an empty chat on the server and open it."""
        chat = await api.create_chat(title, chat_id)
        cache.set(chat_keys.detail(chat.id), ChatDetailData(chat=chat, messages=[]))
        cache.invalidate(chat_keys.list())
        return cls(api, cache, chat_id=chat.id, tone=tone, length=length, commands=commands)

    @property
    def commands(self) -> CommandLog:
        return self._commands

    async def close(self) -> None:
        await self.sync.close()

    # --- Streaming ---

    async def send(
        self,
        parts: str | list[ContentPart],
        message_id: str | None = None,
    ) -> LocalMessage | None:
        """Append a user message and stream the assistant's reply."""
        if isinstance(parts, str):
            parts = [TextPart(text=parts)]
        user_message = LocalMessage(
            id=message_id or str(uuid.uuid4()), role="user", parts=parts
        )
        self.messages.append(user_message)
        return await self._stream_reply(user_message)

    async def regenerate(self, message_id: str) -> LocalMessage | None:
        """Replace ``message_id`` and everything after it with a fresh reply."""
        index = self._index_of(message_id)
        await self._api.delete_trailing_messages(message_id)
        self._truncate(index)
        return await self._stream_reply(None)

    async def edit(self, message_id: str, text: str) -> LocalMessage | None:
        """Resend an edited user message in place of ``message_id`` and its successors."""
        index = self._index_of(message_id)
        await self._api.delete_trailing_messages(message_id)
        self._truncate(index)
        return await self.send(text)

    async def _stream_reply(self, user_message: LocalMessage | None) -> LocalMessage | None:
        assistant_id = str(uuid.uuid4())
        tokens: list[str] = []
        done: dict | None = None

        async for event in self._api.stream_chat(
            self.chat_id,
            message=user_message.wire() if user_message else None,
            assistant_message_id=assistant_id,
            tone=self.tone,
            length=self.length,
        ):
            match event.event:
                case "start":
                    assistant_id = event_payload(event)["assistant_message_id"]
                case "token":
                    tokens.append(event.data)
                case "done":
                    done = event_payload(event)
                case "error":
                    logger.warning("Stream failed", chat_id=self.chat_id, error=event.data)
                    raise StreamFailedError(event.data)

        if done and done.get("is_new_chat"):
            self._cache.invalidate(chat_keys.list())

        assistant = LocalMessage.text(assistant_id, "assistant", "".join(tokens))
        self.messages.append(assistant)
        self.sync.reconcile(self.messages)
        await self.sync.drain()
        return assistant

    def _index_of(self, message_id: str) -> int:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        raise ChatError("not_found:chat", "Message not found")

    def _truncate(self, index: int) -> None:
        removed = self.messages[index:]
        del self.messages[index:]
        removed_ids = {m.id for m in removed}
        self.sync.rewind(len(self.messages), removed_ids)
        self._cache.update(
            chat_keys.detail(self.chat_id),
            lambda detail: detail.model_copy(
                update={
                    "messages": [m for m in detail.messages if m.id not in removed_ids]
                }
            ),
        )

    # --- Optimistic mutations ---

    def _patch_cached_chat(self, **values: object) -> None:
        def patch_detail(detail: ChatDetailData) -> ChatDetailData:
            return detail.model_copy(update={"chat": detail.chat.model_copy(update=values)})

        def patch_list(chats: list[ChatResponse]) -> list[ChatResponse]:
            return [
                c.model_copy(update=values) if c.id == self.chat_id else c for c in chats
            ]

        self._cache.update(chat_keys.detail(self.chat_id), patch_detail)
        self._cache.update(chat_keys.list(), patch_list)

    def _cached_chat(self) -> ChatResponse | None:
        detail = self._cache.get(chat_keys.detail(self.chat_id))
        return detail.chat if detail else None

    def _restore_cached_chat(self, previous: ChatResponse | None, field: str) -> None:
        if previous is not None:
            self._patch_cached_chat(**{field: getattr(previous, field)})

    async def share(self) -> ChatResponse:
        """Make the chat public, then drop its cached entries for a refetch."""
        chat = await self._api.share_chat(self.chat_id)
        self._cache.invalidate(chat_keys.detail(self.chat_id))
        self._cache.invalidate(chat_keys.list())
        return chat

    async def delete(self) -> None:
        """Delete the chat, dropping it from the cached list first.

        Pending reply saves finish before the delete is sent.
        """
        await self.sync.drain()
        previous = self._cache.get(chat_keys.list())

        def apply() -> None:
            self._cache.update(
                chat_keys.list(),
                lambda chats: [c for c in chats if c.id != self.chat_id],
            )

        def undo() -> None:
            if previous is not None:
                self._cache.set(chat_keys.list(), previous)

        await self._commands.execute(
            "delete_chat",
            apply=apply,
            undo=undo,
            send=lambda: self._api.delete_chat(self.chat_id),
        )
        await self.sync.close()
        self._cache.invalidate(chat_keys.detail(self.chat_id))
        self._cache.invalidate(chat_keys.list())

    async def rename(self, title: str) -> ChatResponse:
        """Rename the chat, showing the new title before the server confirms."""
        previous = self._cached_chat()
        return await self._commands.execute(
            "rename",
            apply=lambda: self._patch_cached_chat(title=title),
            undo=lambda: self._restore_cached_chat(previous, "title"),
            send=lambda: self._api.rename_chat(self.chat_id, title),
        )

    async def set_pinned(self, pinned: bool) -> ChatResponse:
        """Pin or unpin the chat optimistically."""
        previous = self._cached_chat()
        return await self._commands.execute(
            "pin",
            apply=lambda: self._patch_cached_chat(pinned=pinned),
            undo=lambda: self._restore_cached_chat(previous, "pinned"),
            send=lambda: self._api.toggle_pin(self.chat_id, pinned),
        )

    async def update_message(self, message_id: str, text: str) -> None:
        """Replace a message's text locally, then on the server."""
        index = self._index_of(message_id)
        original = self.messages[index]
        edited = original.model_copy(update={"parts": [TextPart(text=text)]})

        def apply() -> None:
            self.messages[index] = edited

        def undo() -> None:
            self.messages[index] = original

        await self._commands.execute(
            "update_message",
            apply=apply,
            undo=undo,
            send=lambda: self._api.update_message(self.chat_id, message_id, edited.parts),
        )

    async def delete_message(self, message_id: str) -> None:
        """Remove a message locally, then on the server."""
        index = self._index_of(message_id)
        original = self.messages[index]

        def apply() -> None:
            del self.messages[index]
            self.sync.rewind(len(self.messages))

        def undo() -> None:
            self.messages.insert(index, original)

        await self._commands.execute(
            "delete_message",
            apply=apply,
            undo=undo,
            send=lambda: self._api.delete_message(self.chat_id, message_id),
        )
        self.sync.forget(message_id)
