"""Client-side transcript entries."""

from pydantic import BaseModel, Field

from chathub.schemas.chat_schema import MessageResponse, Role
from chathub.schemas.parts_schema import ContentPart, TextPart, dump_parts, text_of


class LocalMessage(BaseModel):
    """A message as held in the local transcript, saved or not."""

    id: str
    role: Role
    parts: list[ContentPart] = Field(default_factory=list)

    @classmethod
    def from_stored(cls, message: MessageResponse) -> "LocalMessage":
        return cls(id=message.id, role=message.role, parts=list(message.parts))

    @classmethod
    def text(cls, message_id: str, role: Role, text: str) -> "LocalMessage":
        return cls(id=message_id, role=role, parts=[TextPart(text=text)])

    @property
    def content(self) -> str:
        return text_of(self.parts)

    def wire(self) -> dict:
        """Payload for the ``message`` field of a stream request."""
        return {"id": self.id, "role": self.role, "parts": dump_parts(self.parts)}
