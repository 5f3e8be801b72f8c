"""Attachment storage configuration."""

from pathlib import Path

from pydantic import BaseModel


class FileUploadConfig(BaseModel, frozen=True):
    """Attachment upload settings."""

    storage_path: Path
    public_base_url: str
    max_file_size_mb: int

    @property
    def max_file_size_bytes(self) -> int:
        """Get maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024
