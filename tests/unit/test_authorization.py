"""Unit tests for the ownership gate."""

from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.core.exceptions import (
    ChatNotFoundError,
    ForbiddenError,
    MessageNotFoundError,
    UnauthorizedError,
)
from chathub.repositories.chat_repo import ChatRepository
from chathub.services.authorization import ChatAuthorizer, resolve_caller
from tests.factories import text_parts


class TestResolveCaller:
    def test_resolves_state(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace(user_id="u1", is_anonymous=True))
        user = resolve_caller(request)  # type: ignore[arg-type]
        assert user.id == "u1"
        assert user.is_anonymous is True

    def test_missing_user_is_unauthorized(self) -> None:
        request = SimpleNamespace(state=SimpleNamespace())
        with pytest.raises(UnauthorizedError):
            resolve_caller(request)  # type: ignore[arg-type]


class TestChatAuthorizer:
    @pytest.fixture
    def repo(self, db_session: AsyncSession) -> ChatRepository:
        return ChatRepository(db_session)

    async def test_owner_passes(self, repo: ChatRepository) -> None:
        chat = await repo.create_chat("owner", "t")
        authorized = await ChatAuthorizer(repo).verify_chat_ownership(chat.id, "owner")
        assert authorized.id == chat.id

    async def test_missing_chat(self, repo: ChatRepository) -> None:
        with pytest.raises(ChatNotFoundError):
            await ChatAuthorizer(repo).verify_chat_ownership("nope", "owner")

    async def test_other_user_forbidden(self, repo: ChatRepository) -> None:
        chat = await repo.create_chat("owner", "t")
        with pytest.raises(ForbiddenError):
            await ChatAuthorizer(repo).verify_chat_ownership(chat.id, "intruder")

    async def test_message_must_belong_to_chat(self, repo: ChatRepository) -> None:
        chat = await repo.create_chat("owner", "a")
        other = await repo.create_chat("owner", "b")
        message = await repo.create_message(other.id, "user", text_parts("x"), "x")

        with pytest.raises(MessageNotFoundError):
            await ChatAuthorizer(repo).verify_message_in_chat(chat, message.id)

    async def test_message_ownership_resolves_chat(self, repo: ChatRepository) -> None:
        chat = await repo.create_chat("owner", "a")
        message = await repo.create_message(chat.id, "user", text_parts("x"), "x")

        found_chat, found_message = await ChatAuthorizer(repo).verify_message_ownership(
            message.id, "owner"
        )
        assert found_chat.id == chat.id
        assert found_message.id == message.id

    async def test_message_ownership_forbidden(self, repo: ChatRepository) -> None:
        chat = await repo.create_chat("owner", "a")
        message = await repo.create_message(chat.id, "user", text_parts("x"), "x")

        with pytest.raises(ForbiddenError):
            await ChatAuthorizer(repo).verify_message_ownership(message.id, "intruder")

    async def test_unknown_message(self, repo: ChatRepository) -> None:
        with pytest.raises(MessageNotFoundError):
            await ChatAuthorizer(repo).verify_message_ownership("nope", "owner")
