"""Local blob storage for attachment payloads."""

import asyncio
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from chathub.core.settings import FileUploadConfig

_executor = ThreadPoolExecutor(max_workers=4)


class BlobStorage:
    """Stores payloads under ``root`` and addresses them as ``base_url/<key>``."""

    def __init__(self, root: Path, base_url: str) -> None:
        self._root = root
        self._base_url = base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: FileUploadConfig) -> "BlobStorage":
        return cls(root=config.storage_path, base_url=config.public_base_url)

    async def put(self, filename: str, content: bytes) -> str:
        """Write ``content`` and return its public URL."""
        key = f"{uuid.uuid4().hex}{Path(filename).suffix.lower()}"
        path = self._root / key

        def _write() -> None:
            self._root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(_executor, _write)
        return f"{self._base_url}/{key}"

    def _path_for(self, url: str) -> Path:
        key = url.rsplit("/", 1)[-1]
        if not key or key in {".", ".."}:
            raise ValueError(f"Not a blob URL: {url}")
        return self._root / key

    async def delete(self, url: str) -> None:
        """Remove the payload behind ``url``; a missing payload is not an error."""
        path = self._path_for(url)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(_executor, lambda: path.unlink(missing_ok=True))

    async def read(self, url: str) -> bytes:
        """Load the payload behind ``url``."""
        path = self._path_for(url)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, path.read_bytes)
