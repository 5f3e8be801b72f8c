"""Conversion of stored messages into LangChain chat messages."""

from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from chathub.schemas.chat_schema import Length, MessageResponse, Tone
from chathub.schemas.parts_schema import ContentPart, FilePart, ImagePart, TextPart, text_of

TONE_MODIFIERS: dict[Tone, str] = {
    "neutral": "",
    "professional": (
        "\n\n[Respond in a professional, formal tone suitable for business communication.]"
    ),
    "casual": "\n\n[Respond in a casual, relaxed tone as if chatting with a friend.]",
    "friendly": "\n\n[Respond in a warm, friendly, and encouraging tone.]",
    "concise": "\n\n[Respond in a direct, concise manner. Be brief and to the point.]",
}

LENGTH_MODIFIERS: dict[Length, str] = {
    "auto": "",
    "brief": "\n\n[Keep your response very brief - 2-3 sentences maximum.]",
    "balanced": "\n\n[Provide a balanced response - concise but complete.]",
    "detailed": "\n\n[Provide a detailed response with explanations and examples.]",
    "comprehensive": "\n\n[Provide a comprehensive, in-depth response covering all aspects.]",
}


def modifier_suffix(tone: Tone = "neutral", length: Length = "auto") -> str:
    """Instruction text appended to the latest user turn."""
    return TONE_MODIFIERS[tone] + LENGTH_MODIFIERS[length]


def part_to_block(part: ContentPart) -> dict[str, Any]:
    """Map one content part onto a LangChain content block."""
    match part:
        case TextPart(text=text):
            return {"type": "text", "text": text}
        case ImagePart(data=data):
            return {"type": "image_url", "image_url": {"url": data.url}}
        case FilePart(data=data, media_type=media_type):
            block: dict[str, Any] = {
                "type": "file",
                "source_type": "base64",
                "data": data.base64,
                "mime_type": media_type,
            }
            if data.name:
                block["filename"] = data.name
            return block
        case _:
            raise ValueError(f"Unsupported content part: {part!r}")


def _user_message(parts: list[ContentPart], suffix: str = "") -> HumanMessage:
    if all(isinstance(part, TextPart) for part in parts):
        return HumanMessage(content=text_of(parts) + suffix)
    blocks = [part_to_block(part) for part in parts]
    if suffix:
        blocks.append({"type": "text", "text": suffix.lstrip("\n")})
    return HumanMessage(content=blocks)


def build_langchain_messages(
    messages: list[MessageResponse],
    system_prompt: str,
    tone: Tone = "neutral",
    length: Length = "auto",
) -> list[BaseMessage]:
    """System prompt first, then the transcript in order.

    Tone and length modifiers are appended to the last user message only;
    the stored transcript is never modified.
    """
    last_user_index = max(
        (i for i, m in enumerate(messages) if m.role == "user"), default=-1
    )
    suffix = modifier_suffix(tone, length)

    result: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for index, message in enumerate(messages):
        match message.role:
            case "user":
                result.append(
                    _user_message(message.parts, suffix if index == last_user_index else "")
                )
            case "assistant":
                result.append(AIMessage(content=text_of(message.parts)))
            case "system":
                result.append(SystemMessage(content=text_of(message.parts)))
    return result
