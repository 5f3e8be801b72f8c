"""In-memory query cache keyed by tuples, with invalidation listeners."""

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger()

CacheKey = tuple[str, ...]


class chat_keys:  # noqa: N801
    """Key factory for chat queries."""

    all: CacheKey = ("chats",)

    @staticmethod
    def list() -> CacheKey:
        return ("chats", "list")

    @staticmethod
    def detail(chat_id: str) -> CacheKey:
        return ("chats", "detail", chat_id)


class QueryCache:
    """Holds fetched query results until they are invalidated.

    Listeners registered with :meth:`subscribe` are told about every
    invalidation, which is how views know to refetch.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}
        self._listeners: list[Callable[[CacheKey], None]] = []

    def get(self, key: CacheKey) -> Any | None:
        return self._entries.get(key)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value

    def update(self, key: CacheKey, updater: Callable[[Any], Any]) -> bool:
        """Replace a cached value in place; returns False when nothing is cached."""
        if key not in self._entries:
            return False
        self._entries[key] = updater(self._entries[key])
        return True

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value, loading and storing it on a miss."""
        if key in self._entries:
            return self._entries[key]
        value = await loader()
        self._entries[key] = value
        return value

    def invalidate(self, key: CacheKey) -> None:
        """Drop ``key`` and notify listeners."""
        self._entries.pop(key, None)
        logger.debug("Cache invalidated", key=key)
        for listener in list(self._listeners):
            listener(key)

    def subscribe(self, listener: Callable[[CacheKey], None]) -> Callable[[], None]:
        """Register an invalidation listener; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
