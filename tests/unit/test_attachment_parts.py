"""Unit tests for attachment conversion."""

import base64
import io

import pytest
from docx import Document
from openpyxl import Workbook

from chathub.models.stored_file import StoredFile
from chathub.schemas.parts_schema import FilePart, ImagePart, TextPart
from chathub.services.attachment_parts import (
    DOCX_TYPE,
    XLSX_TYPE,
    AttachmentConverter,
    merge_attachment_parts,
)
from chathub.services.blob_storage import BlobStorage


async def _stored(
    blobs: BlobStorage, name: str, media_type: str, content: bytes
) -> StoredFile:
    url = await blobs.put(name, content)
    return StoredFile(
        id=f"file-{name}",
        user_id="owner",
        name=name,
        url=url,
        media_type=media_type,
        size=len(content),
    )


def _docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _xlsx_bytes() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Budget"
    sheet.append(["item", "cost"])
    sheet.append(["coffee", 3])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def converter(blob_storage: BlobStorage) -> AttachmentConverter:
    return AttachmentConverter(blob_storage)


class TestToPart:
    async def test_plain_text_inlined(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "notes.txt", "text/plain", b"remember the milk")

        part = await converter.to_part(stored)

        assert isinstance(part, TextPart)
        assert "--- File: notes.txt (text/plain) ---" in part.text
        assert "remember the milk" in part.text
        assert "--- End of notes.txt ---" in part.text

    async def test_docx_text_extracted(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        content = _docx_bytes("First paragraph", "Second paragraph")
        stored = await _stored(blob_storage, "report.docx", DOCX_TYPE, content)

        part = await converter.to_part(stored)

        assert isinstance(part, TextPart)
        assert "(.docx)" in part.text
        assert "First paragraph\nSecond paragraph" in part.text

    async def test_xlsx_rows_extracted(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "budget.xlsx", XLSX_TYPE, _xlsx_bytes())

        part = await converter.to_part(stored)

        assert isinstance(part, TextPart)
        assert "Sheet: Budget" in part.text
        assert "item\tcost" in part.text
        assert "coffee\t3" in part.text

    async def test_image_becomes_data_url(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "cat.png", "image/png", b"\x89PNG fake")

        part = await converter.to_part(stored)

        assert isinstance(part, ImagePart)
        encoded = base64.b64encode(b"\x89PNG fake").decode()
        assert part.data.url == f"data:image/png;base64,{encoded}"
        assert part.media_type == "image/png"

    async def test_pdf_sent_as_file(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "paper.pdf", "application/pdf", b"%PDF-1.4")

        part = await converter.to_part(stored)

        assert isinstance(part, FilePart)
        assert base64.b64decode(part.data.base64) == b"%PDF-1.4"
        assert part.data.name == "paper.pdf"

    async def test_unsupported_type_skipped(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "app.exe", "application/octet-stream", b"MZ")
        assert await converter.to_part(stored) is None

    async def test_missing_payload_skipped(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        stored = await _stored(blob_storage, "gone.txt", "text/plain", b"x")
        await blob_storage.delete(stored.url)

        assert await converter.to_part(stored) is None

    async def test_convert_all_drops_failures(
        self, converter: AttachmentConverter, blob_storage: BlobStorage
    ) -> None:
        good = await _stored(blob_storage, "a.txt", "text/plain", b"alpha")
        bad = await _stored(blob_storage, "b.bin", "application/zip", b"PK")

        parts = await converter.convert_all([good, bad])

        assert len(parts) == 1
        assert "alpha" in parts[0].text


class TestMergeAttachmentParts:
    def test_text_combined_first_then_other_parts(self) -> None:
        image = ImagePart(data={"url": "https://example.com/a.png"})
        pdf = FilePart(data={"base64": "JVBERg==", "name": "x.pdf"})

        merged = merge_attachment_parts(
            [TextPart(text="summarize"), image], [TextPart(text=" [doc]"), pdf]
        )

        assert merged == [TextPart(text="summarize [doc]"), image, pdf]

    def test_no_text_keeps_only_other_parts(self) -> None:
        pdf = FilePart(data={"base64": "JVBERg==", "name": "x.pdf"})
        assert merge_attachment_parts([], [pdf]) == [pdf]
