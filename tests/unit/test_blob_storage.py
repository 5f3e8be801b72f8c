"""Unit tests for BlobStorage."""

from pathlib import Path

import pytest

from chathub.services.blob_storage import BlobStorage


class TestBlobStorage:
    async def test_put_writes_under_root(self, tmp_path: Path) -> None:
        storage = BlobStorage(tmp_path, "/files/")
        url = await storage.put("Report.PDF", b"%PDF")

        assert url.startswith("/files/")
        assert url.endswith(".pdf")
        assert (tmp_path / url.rsplit("/", 1)[-1]).read_bytes() == b"%PDF"

    async def test_delete_removes_payload(self, tmp_path: Path) -> None:
        storage = BlobStorage(tmp_path, "/files")
        url = await storage.put("a.txt", b"x")

        await storage.delete(url)
        assert list(tmp_path.iterdir()) == []

    async def test_delete_missing_is_quiet(self, tmp_path: Path) -> None:
        await BlobStorage(tmp_path, "/files").delete("/files/not-there.txt")

    async def test_delete_rejects_bad_url(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            await BlobStorage(tmp_path, "/files").delete("/files/..")
