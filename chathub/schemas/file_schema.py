"""Attachment upload schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FileResponse(BaseModel):
    """Stored attachment as returned by the upload endpoint."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    url: str
    media_type: str
    size: int
    message_id: str | None = None
    created_at: datetime


class FileData(BaseModel):
    file: FileResponse
