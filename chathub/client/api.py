"""Async HTTP client for the chat API."""

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import structlog

from chathub.core.exceptions import ChatError
from chathub.schemas.chat_schema import (
    ChatDetailData,
    ChatResponse,
    Length,
    MessageResponse,
    StreamEvent,
    Tone,
)
from chathub.schemas.parts_schema import ContentPart, dump_parts

logger = structlog.get_logger()

SSE_DATA_PREFIX = "data: "


def error_from_response(response: httpx.Response) -> ChatError:
    """Rebuild the server's typed error from an error response."""
    try:
        body = response.json()
        return ChatError(body["code"], body.get("message"))
    except (ValueError, KeyError, TypeError):
        return ChatError("bad_request:database", response.text or response.reason_phrase)


class ChatAPIClient:
    """Thin wrapper over :class:`httpx.AsyncClient` speaking the envelope format.

    Every call returns the envelope's ``data`` payload parsed into the server
    schemas, or raises :class:`ChatError` carrying the server's code.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        prefix: str = "/api/v1",
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    @classmethod
    def connect(cls, base_url: str, token: str | None = None) -> "ChatAPIClient":
        """Client owning its own connection pool."""
        return cls(httpx.AsyncClient(base_url=base_url), token=token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChatAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(
            method, f"{self._prefix}{path}", headers=self._headers, **kwargs
        )
        if response.is_error:
            raise error_from_response(response)
        if response.status_code == httpx.codes.NO_CONTENT:
            return None
        return response.json()["data"]

    # --- Chats ---

    async def list_chats(self) -> list[ChatResponse]:
        data = await self._request("GET", "/chats")
        return [ChatResponse.model_validate(chat) for chat in data["chats"]]

    async def create_chat(self, title: str, chat_id: str | None = None) -> ChatResponse:
        payload: dict[str, Any] = {"title": title}
        if chat_id:
            payload["id"] = chat_id
        data = await self._request("POST", "/chats", json=payload)
        return ChatResponse.model_validate(data["chat"])

    async def get_chat(self, chat_id: str) -> ChatDetailData:
        data = await self._request("GET", f"/chats/{chat_id}")
        return ChatDetailData.model_validate(data)

    async def rename_chat(self, chat_id: str, title: str) -> ChatResponse:
        data = await self._request("PATCH", f"/chats/{chat_id}", json={"title": title})
        return ChatResponse.model_validate(data["chat"])

    async def toggle_pin(self, chat_id: str, pinned: bool) -> ChatResponse:
        data = await self._request(
            "PATCH", f"/chats/{chat_id}/pin", json={"pinned": pinned}
        )
        return ChatResponse.model_validate(data["chat"])

    async def share_chat(self, chat_id: str) -> ChatResponse:
        data = await self._request("POST", f"/chats/{chat_id}/share")
        return ChatResponse.model_validate(data["chat"])

    async def delete_chat(self, chat_id: str) -> None:
        await self._request("DELETE", f"/chats/{chat_id}")

    async def get_shared_chat(self, chat_id: str) -> ChatDetailData:
        data = await self._request("GET", f"/shared/{chat_id}")
        return ChatDetailData.model_validate(data)

    # --- Messages ---

    async def list_messages(self, chat_id: str) -> list[MessageResponse]:
        data = await self._request("GET", f"/chats/{chat_id}/messages")
        return [MessageResponse.model_validate(m) for m in data["messages"]]

    async def save_message(
        self,
        chat_id: str,
        role: str,
        parts: list[ContentPart],
        custom_id: str | None = None,
    ) -> MessageResponse:
        payload: dict[str, Any] = {"role": role, "parts": dump_parts(parts)}
        if custom_id:
            payload["id"] = custom_id
        data = await self._request("POST", f"/chats/{chat_id}/messages", json=payload)
        return MessageResponse.model_validate(data["message"])

    async def update_message(
        self, chat_id: str, message_id: str, parts: list[ContentPart]
    ) -> MessageResponse:
        data = await self._request(
            "PATCH",
            f"/chats/{chat_id}/messages/{message_id}",
            json={"parts": dump_parts(parts)},
        )
        return MessageResponse.model_validate(data["message"])

    async def delete_message(self, chat_id: str, message_id: str) -> None:
        await self._request("DELETE", f"/chats/{chat_id}/messages/{message_id}")

    async def delete_messages_after(self, chat_id: str, message_id: str) -> None:
        await self._request("DELETE", f"/chats/{chat_id}/messages/{message_id}/after")

    async def delete_trailing_messages(self, message_id: str) -> str:
        """Delete a message and its successors; returns the owning chat id."""
        data = await self._request("DELETE", f"/messages/{message_id}/trailing")
        return data["chat_id"]

    # --- Streaming ---

    async def stream_chat(
        self,
        chat_id: str,
        message: dict[str, Any] | None = None,
        assistant_message_id: str | None = None,
        tone: Tone = "neutral",
        length: Length = "auto",
    ) -> AsyncGenerator[StreamEvent, None]:
        """POST to the stream endpoint and yield its Server-Sent Events."""
        payload: dict[str, Any] = {"chat_id": chat_id, "tone": tone, "length": length}
        if message is not None:
            payload["message"] = message
        if assistant_message_id:
            payload["assistant_message_id"] = assistant_message_id

        async with self._client.stream(
            "POST", f"{self._prefix}/chat/stream", json=payload, headers=self._headers
        ) as response:
            if response.is_error:
                await response.aread()
                raise error_from_response(response)
            async for line in response.aiter_lines():
                if not line.startswith(SSE_DATA_PREFIX):
                    continue
                try:
                    yield StreamEvent.model_validate_json(line[len(SSE_DATA_PREFIX) :])
                except ValueError:
                    logger.warning("Skipping malformed stream event", line=line)


def event_payload(event: StreamEvent) -> dict[str, Any]:
    """Decode the JSON payload of ``start`` and ``done`` events."""
    return json.loads(event.data)
