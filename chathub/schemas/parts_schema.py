"""Message content parts.

A message is an ordered list of parts discriminated on ``type``. Images are
referenced by URL, files travel inline as base64.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TextPart(BaseModel):
    """Plain text segment."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str
    media_type: str = Field(default="text/plain")


class ImageData(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)


class ImagePart(BaseModel):
    """Image attachment referenced by URL."""

    model_config = ConfigDict(frozen=True)

    type: Literal["data-image"] = "data-image"
    data: ImageData
    media_type: str = Field(default="image/jpeg")


class FileData(BaseModel):
    model_config = ConfigDict(frozen=True)

    base64: str = Field(..., min_length=1)
    name: str | None = None


class FilePart(BaseModel):
    """Document attachment carried inline as base64."""

    model_config = ConfigDict(frozen=True)

    type: Literal["data-file"] = "data-file"
    data: FileData
    media_type: str = Field(default="application/pdf")


ContentPart = Annotated[TextPart | ImagePart | FilePart, Field(discriminator="type")]

content_parts_adapter: TypeAdapter[list[ContentPart]] = TypeAdapter(list[ContentPart])


def text_of(parts: list[ContentPart]) -> str:
    """Concatenate the text parts in order."""
    return "".join(part.text for part in parts if isinstance(part, TextPart))


def dump_parts(parts: list[ContentPart]) -> list[dict]:
    """Serialize parts for the JSON column and for API payloads."""
    return content_parts_adapter.dump_python(parts, mode="json")


def load_parts(raw: list[dict]) -> list[ContentPart]:
    """Validate stored or submitted parts."""
    return content_parts_adapter.validate_python(raw)
