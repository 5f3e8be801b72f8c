"""Reconciles streamed assistant replies with stored chat state.

User messages never pass through here; the server saves them before the
model is called. Assistant replies are saved by the client, exactly once,
after streaming completes.
"""

import asyncio
from collections.abc import Iterable, Sequence
from enum import StrEnum

import structlog

from chathub.client.api import ChatAPIClient
from chathub.client.cache import QueryCache, chat_keys
from chathub.client.models import LocalMessage

logger = structlog.get_logger()


class SyncState(StrEnum):
    UNSAVED = "unsaved"
    SYNCED = "synced"


class ChatSync:
    """Per-chat sync state: the synced-id set and the transcript watermark.

    The synced set is the only record of what has been persisted. An id is
    claimed in it before its save is issued and released if the save fails,
    so two reconciles racing over the same transcript save each reply once.
    State belongs to the instance; a closed instance still lets in-flight
    saves finish but no longer touches the cache.
    """

    def __init__(
        self,
        chat_id: str,
        api: ChatAPIClient,
        cache: QueryCache,
        stored: Iterable[LocalMessage] = (),
    ) -> None:
        self.chat_id = chat_id
        self._api = api
        self._cache = cache
        stored = list(stored)
        self._synced: set[str] = {m.id for m in stored}
        self._watermark = len(stored)
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def closed(self) -> bool:
        return self._closed

    def state_of(self, message_id: str) -> SyncState:
        return SyncState.SYNCED if message_id in self._synced else SyncState.UNSAVED

    def reconcile(self, transcript: Sequence[LocalMessage]) -> list[asyncio.Task[None]]:
        """Schedule saves for unsynced assistant replies if the transcript grew."""
        if self._closed or len(transcript) <= self._watermark:
            return []
        self._watermark = len(transcript)

        scheduled: list[asyncio.Task[None]] = []
        for message in transcript:
            if message.role != "assistant" or message.id in self._synced:
                continue
            if not message.content.strip():
                continue
            self._synced.add(message.id)
            task = asyncio.create_task(self._save(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            scheduled.append(task)
        return scheduled

    def rewind(self, length: int, removed_ids: Iterable[str] = ()) -> None:
        """Follow a truncation so the next reply counts as growth."""
        self._watermark = min(self._watermark, length)
        self._synced.difference_update(removed_ids)

    def forget(self, message_id: str) -> None:
        """Drop a deleted message from the synced set."""
        self._synced.discard(message_id)

    async def drain(self) -> None:
        """Wait for every save scheduled so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        """Stop reacting to transcripts and let pending saves finish."""
        self._closed = True
        await self.drain()

    async def _save(self, message: LocalMessage) -> None:
        try:
            await self._api.save_message(
                self.chat_id, message.role, message.parts, custom_id=message.id
            )
        except Exception:
            self._synced.discard(message.id)
            logger.exception(
                "Failed to save assistant message",
                chat_id=self.chat_id,
                message_id=message.id,
            )
            return
        if self._closed:
            return
        self._cache.invalidate(chat_keys.detail(self.chat_id))
