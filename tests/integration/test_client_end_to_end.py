"""The client package driving the real application over ASGI."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from chathub.client.api import ChatAPIClient
from chathub.client.cache import QueryCache, chat_keys
from chathub.client.session import ChatSession
from chathub.core.exceptions import ChatError
from chathub.dependencies import get_llm
from tests.factories import fake_llm_replying, make_auth_headers


def _token(user_id: str) -> str:
    return make_auth_headers(user_id)["Authorization"].removeprefix("Bearer ")


@pytest.fixture
async def api(app: FastAPI) -> AsyncGenerator[ChatAPIClient, None]:
    transport = ASGITransport(app=app)
    async with ChatAPIClient(
        AsyncClient(transport=transport, base_url="http://test"), token=_token("user-1")
    ) as client:
        yield client


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


class TestChatSessionStreaming:
    async def test_send_persists_both_turns(
        self, app: FastAPI, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        app.dependency_overrides[get_llm] = lambda: fake_llm_replying("Paris is the capital")
        session = ChatSession(api, cache)

        reply = await session.send("Capital of France?")
        await session.close()

        assert reply is not None
        assert reply.content == "Paris is the capital"
        stored = await api.list_messages(session.chat_id)
        assert [(m.role, m.content) for m in stored] == [
            ("user", "Capital of France?"),
            ("assistant", "Paris is the capital"),
        ]
        assert stored[1].id == reply.id

    async def test_regenerate_replaces_reply(
        self, app: FastAPI, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        app.dependency_overrides[get_llm] = lambda: fake_llm_replying("first", "second")
        session = ChatSession(api, cache)
        first = await session.send("hi")
        assert first is not None

        second = await session.regenerate(first.id)
        await session.close()

        assert second is not None
        assert second.id != first.id
        stored = await api.list_messages(session.chat_id)
        assistants = [m for m in stored if m.role == "assistant"]
        assert [m.id for m in assistants] == [second.id]
        assert [m.id for m in session.messages] == [stored[0].id, second.id]

    async def test_edit_resends_from_user_turn(
        self, app: FastAPI, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        app.dependency_overrides[get_llm] = lambda: fake_llm_replying("ok")
        session = ChatSession(api, cache)
        await session.send("original question")
        user_id = session.messages[0].id

        await session.edit(user_id, "better question")
        await session.close()

        stored = await api.list_messages(session.chat_id)
        assert [(m.role, m.content) for m in stored] == [
            ("user", "better question"),
            ("assistant", "ok"),
        ]
        assert user_id not in {m.id for m in stored}

    async def test_regenerate_unknown_message(
        self, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        session = ChatSession(api, cache)
        with pytest.raises(ChatError):
            await session.regenerate("missing")


class TestOptimisticMutations:
    async def test_rename_and_pin_reach_server(
        self, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        chat = await api.create_chat("Draft")
        session = await ChatSession.open(api, cache, chat.id)

        await session.rename("Final")
        await session.set_pinned(True)

        assert cache.get(chat_keys.detail(chat.id)).chat.title == "Final"
        detail = await api.get_chat(chat.id)
        assert detail.chat.title == "Final"
        assert detail.chat.pinned is True

    async def test_failed_rename_rolls_back_cache(
        self, api: ChatAPIClient, cache: QueryCache
    ) -> None:
        chat = await api.create_chat("Keep me")
        session = await ChatSession.open(api, cache, chat.id)

        with pytest.raises(ChatError) as exc_info:
            await session.rename("   ")

        assert exc_info.value.code == "bad_request:chat"
        assert cache.get(chat_keys.detail(chat.id)).chat.title == "Keep me"


class TestErrors:
    async def test_foreign_chat_raises_forbidden(
        self, app: FastAPI, api: ChatAPIClient
    ) -> None:
        chat = await api.create_chat("mine")
        transport = ASGITransport(app=app)
        async with ChatAPIClient(
            AsyncClient(transport=transport, base_url="http://test"), token=_token("user-2")
        ) as intruder:
            with pytest.raises(ChatError) as exc_info:
                await intruder.get_chat(chat.id)

        assert exc_info.value.code == "forbidden:chat"
        assert exc_info.value.status_code == 403


class TestChatLifecycle:
    async def test_create_share_delete(self, api: ChatAPIClient, cache: QueryCache) -> None:
        await cache.fetch(chat_keys.list(), api.list_chats)
        session = await ChatSession.create(api, cache, "Lifecycle")

        listed = await cache.fetch(chat_keys.list(), api.list_chats)
        assert [c.id for c in listed] == [session.chat_id]

        shared = await session.share()
        assert shared.visibility == "public"
        assert (await api.get_shared_chat(session.chat_id)).chat.id == session.chat_id

        await session.delete()
        assert await api.list_chats() == []
        assert cache.get(chat_keys.detail(session.chat_id)) is None
