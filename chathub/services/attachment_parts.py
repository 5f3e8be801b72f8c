"""Turn stored attachments into content parts the model can read.

PDFs and images travel as file and image parts. Word and Excel documents
are reduced to their text; plain-text formats are inlined as they are.
Anything else is skipped.
"""

import asyncio
import base64
import io
from collections.abc import Sequence

import structlog
from docx import Document
from openpyxl import load_workbook

from chathub.models.stored_file import StoredFile
from chathub.schemas.parts_schema import (
    ContentPart,
    FileData,
    FilePart,
    ImageData,
    ImagePart,
    TextPart,
)
from chathub.services.blob_storage import BlobStorage

logger = structlog.get_logger()

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TEXT_APPLICATION_TYPES = {"application/json", "application/xml", "application/x-yaml"}


def extract_docx_text(content: bytes) -> str:
    """Paragraph text of a DOCX document, one paragraph per line."""
    document = Document(io.BytesIO(content))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_xlsx_text(content: bytes) -> str:
    """Every sheet as tab-separated rows under a ``Sheet: <name>`` heading."""
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sections = []
        for sheet in workbook.worksheets:
            rows = [
                "\t".join("" if cell is None else str(cell) for cell in row)
                for row in sheet.iter_rows(values_only=True)
            ]
            sections.append(f"Sheet: {sheet.title}\n" + "\n".join(rows))
        return "\n\n".join(sections)
    finally:
        workbook.close()


def _framed(name: str, label: str, text: str) -> TextPart:
    return TextPart(text=f"\n\n--- File: {name} ({label}) ---\n{text}\n--- End of {name} ---\n\n")


def _is_text_type(media_type: str) -> bool:
    return media_type.startswith("text/") or media_type in TEXT_APPLICATION_TYPES


class AttachmentConverter:
    """Reads attachment payloads from blob storage and converts them to parts."""

    def __init__(self, blob_storage: BlobStorage) -> None:
        self._blob_storage = blob_storage

    async def to_part(self, stored: StoredFile) -> ContentPart | None:
        """Convert one attachment; unreadable or unsupported files give ``None``."""
        media_type = stored.media_type
        if not (
            media_type in (PDF_TYPE, DOCX_TYPE, XLSX_TYPE)
            or media_type.startswith("image/")
            or _is_text_type(media_type)
        ):
            logger.warning(
                "Skipping unsupported attachment", file_id=stored.id, media_type=media_type
            )
            return None

        try:
            content = await self._blob_storage.read(stored.url)
            return await self._convert(stored, content)
        except Exception:
            logger.exception("Failed to convert attachment", file_id=stored.id, name=stored.name)
            return None

    async def _convert(self, stored: StoredFile, content: bytes) -> ContentPart:
        media_type = stored.media_type
        if media_type.startswith("image/"):
            encoded = base64.b64encode(content).decode("ascii")
            return ImagePart(
                data=ImageData(url=f"data:{media_type};base64,{encoded}"),
                media_type=media_type,
            )
        if media_type == PDF_TYPE:
            encoded = base64.b64encode(content).decode("ascii")
            return FilePart(data=FileData(base64=encoded, name=stored.name), media_type=PDF_TYPE)

        loop = asyncio.get_running_loop()
        if media_type == DOCX_TYPE:
            text = await loop.run_in_executor(None, extract_docx_text, content)
            return _framed(stored.name, ".docx", text)
        if media_type == XLSX_TYPE:
            text = await loop.run_in_executor(None, extract_xlsx_text, content)
            return _framed(stored.name, ".xlsx", text)
        return _framed(stored.name, media_type, content.decode("utf-8", errors="replace"))

    async def convert_all(self, files: Sequence[StoredFile]) -> list[ContentPart]:
        """Convert attachments concurrently, dropping the ones that fail."""
        parts = await asyncio.gather(*(self.to_part(stored) for stored in files))
        return [part for part in parts if part is not None]


def merge_attachment_parts(
    parts: Sequence[ContentPart], converted: Sequence[ContentPart]
) -> list[ContentPart]:
    """Fold converted attachments into a user message's parts.

    All text, the message's own first, is combined into one leading text
    part; image and file parts follow in their original order.
    """
    text = "".join(p.text for p in (*parts, *converted) if isinstance(p, TextPart))
    others = [p for p in (*parts, *converted) if not isinstance(p, TextPart)]
    if text.strip():
        return [TextPart(text=text), *others]
    return others
