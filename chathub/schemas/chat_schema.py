"""Chat and message request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator

from chathub.schemas.parts_schema import ContentPart, TextPart

Role = Literal["user", "assistant", "system"]
Tone = Literal["neutral", "professional", "casual", "friendly", "concise"]
Length = Literal["auto", "brief", "balanced", "detailed", "comprehensive"]

ID_FIELD = Field(..., min_length=1, max_length=36)


# --- Chats ---


class ChatResponse(BaseModel):
    """Public chat representation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    user_id: str
    title: str
    visibility: Literal["public", "private"]
    pinned: bool
    created_at: datetime
    updated_at: datetime


class CreateChatRequest(BaseModel):
    """Create a chat; ``id`` lets the client pre-allocate the identity."""

    title: str | None = Field(default=None, max_length=255)
    id: str | None = Field(default=None, min_length=1, max_length=36)


class RenameChatRequest(BaseModel):
    """Rename a chat. Emptiness is checked by the service."""

    title: str | None = Field(default=None, max_length=255)


class TogglePinRequest(BaseModel):
    """Pin state; must be a JSON boolean, ``false`` included."""

    pinned: StrictBool


# --- Messages ---


class MessageResponse(BaseModel):
    """Single message within a chat."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    chat_id: str
    role: Role
    parts: list[ContentPart]
    content: str
    is_edited: bool
    created_at: datetime
    updated_at: datetime | None = None


class MessageContentRequest(BaseModel):
    """Either ``parts`` or a bare ``content`` string (wrapped as one text part)."""

    parts: list[ContentPart] | None = None
    content: str | None = None

    @model_validator(mode="after")
    def require_parts_or_content(self) -> "MessageContentRequest":
        if not self.parts:
            if not self.content:
                raise ValueError("parts or content is required")
            self.parts = [TextPart(text=self.content)]
        return self

    @property
    def resolved_parts(self) -> list[ContentPart]:
        return list(self.parts or [])


class SaveMessageRequest(MessageContentRequest):
    """Persist one message; ``id`` is used as the message identity when given."""

    id: str | None = Field(default=None, min_length=1, max_length=36)
    role: Role
    attachment_ids: list[str] = Field(default_factory=list)


class UpdateMessageRequest(MessageContentRequest):
    """Replace the content of an existing message."""


# --- Streaming ---


class UserMessageIn(BaseModel):
    """User turn submitted with a stream request."""

    id: str = ID_FIELD
    role: Literal["user"] = "user"
    parts: list[ContentPart] = Field(..., min_length=1)
    attachment_ids: list[str] = Field(default_factory=list)


class ChatStreamRequest(BaseModel):
    """Stream an assistant reply into ``chat_id``.

    Without ``message`` the stored transcript is answered as-is, which is how
    regenerate re-invokes the model after the trailing deletion.
    """

    chat_id: str = ID_FIELD
    message: UserMessageIn | None = None
    assistant_message_id: str | None = Field(default=None, min_length=1, max_length=36)
    tone: Tone = "neutral"
    length: Length = "auto"


class StreamEvent(BaseModel):
    """Server-Sent Event for streaming responses."""

    event: Literal["start", "token", "done", "error"]
    data: str


# --- Response payloads ---


class ChatListData(BaseModel):
    chats: list[ChatResponse]


class ChatData(BaseModel):
    chat: ChatResponse


class ChatDetailData(BaseModel):
    chat: ChatResponse
    messages: list[MessageResponse]


class MessageListData(BaseModel):
    messages: list[MessageResponse]


class MessageData(BaseModel):
    message: MessageResponse


class SuccessData(BaseModel):
    success: bool = True


class ShareData(SuccessData):
    chat: ChatResponse


class TrailingDeleteData(SuccessData):
    chat_id: str
