"""Upload file management for admin content uploads."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from heritagepal.core.config import settings
from heritagepal.core.exceptions import PayloadTooLargeError, ValidationError
from heritagepal.core.logging import get_logger


logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xlsx", ".txt"})
CHUNK_SIZE = 64 * 1024


@dataclass
class SavedUpload:
    path: Path
    filename: str
    original_name: str
    size: int
    mime_type: Optional[str]

    def read_text(self) -> str:
        return self.path.read_bytes().decode("utf-8", errors="replace")


class UploadFileManager:
    """Stores uploads under ``base_dir`` with uuid filenames."""

    def __init__(self, base_dir: str = "uploads", max_file_size: int = 10 * 1024 * 1024):
        self.base_dir = Path(base_dir)
        self.max_file_size = max_file_size

    def _ensure_directories(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def check_extension(filename: Optional[str]) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                "Unsupported file type. Allowed: " + ", ".join(sorted(e[1:] for e in ALLOWED_EXTENSIONS))
            )
        return ext

    async def save(self, upload: UploadFile) -> SavedUpload:
        ext = self.check_extension(upload.filename)
        self._ensure_directories()
        filename = f"{uuid.uuid4()}{ext}"
        target = self.base_dir / filename
        size = 0
        try:
            out = await asyncio.to_thread(target.open, "wb")
            try:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_file_size:
                        raise PayloadTooLargeError(
                            f"File too large. Maximum size is {self.max_file_size} bytes"
                        )
                    await asyncio.to_thread(out.write, chunk)
            finally:
                await asyncio.to_thread(out.close)
        except Exception:
            self.remove(target)
            raise
        return SavedUpload(
            path=target,
            filename=filename,
            original_name=upload.filename or filename,
            size=size,
            mime_type=upload.content_type,
        )

    def remove(self, path: Optional[str | Path]) -> bool:
        """Delete a stored file; missing files and OS errors are logged, not raised."""
        if not path:
            return False
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Error removing file %s: %s", path, e)
            return False
        return True


def build_upload_manager() -> UploadFileManager:
    return UploadFileManager(
        base_dir=settings.uploads.upload_dir,
        max_file_size=settings.uploads.max_file_size,
    )
