"""Filesystem storage for uploaded item images."""

from __future__ import annotations

import time
from pathlib import Path, PurePosixPath
from typing import Optional

from logic.errors import StorageError
from stylist_app.logging_config import get_logger
from tools.observability import instrument_operation

logger = get_logger(__name__)

URL_PREFIX = "/uploads"
_MAX_NAME_ATTEMPTS = 100


class ImageStore:
    """Write uploads to a single directory and address them as ``/uploads/<name>``."""

    def __init__(self, upload_dir: str | Path = "uploads") -> None:
        self.upload_dir = Path(upload_dir)

    def _ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _extension(original_filename: str | None) -> str:
        return PurePosixPath(original_filename or "").suffix.lower()

    def resolve(self, relative_path: str) -> Path:
        """Map a served path back to a file inside the upload directory."""

        name = PurePosixPath(relative_path or "").name
        if not name:
            raise StorageError(f"Not an upload path: {relative_path!r}")
        return self.upload_dir / name

    @instrument_operation("image_store.store")
    def store(self, file_bytes: bytes, original_filename: str | None) -> str:
        """Persist ``file_bytes`` under a timestamp-derived name.

        The original extension is kept. Files are created exclusively, so a
        name clash within the same millisecond gets a numeric suffix instead
        of overwriting an earlier upload.
        """

        extension = self._extension(original_filename)
        stem = str(int(time.time() * 1000))
        try:
            self._ensure_dir()
            for attempt in range(_MAX_NAME_ATTEMPTS):
                name = f"{stem}{extension}" if attempt == 0 else f"{stem}-{attempt}{extension}"
                target = self.upload_dir / name
                try:
                    with open(target, "xb") as handle:
                        handle.write(file_bytes)
                except FileExistsError:
                    continue
                logger.info("Stored upload", extra={"stored_name": name, "size": len(file_bytes)})
                return f"{URL_PREFIX}/{name}"
        except OSError as exc:
            raise StorageError(f"Storage failed: {exc}") from exc
        raise StorageError(f"Storage failed: no free file name for {stem}{extension}")

    def read(self, relative_path: str) -> Optional[bytes]:
        """Return the stored bytes, or ``None`` when the file is gone."""

        try:
            return self.resolve(relative_path).read_bytes()
        except (FileNotFoundError, IsADirectoryError, StorageError):
            return None

    def discard(self, relative_path: str) -> bool:
        """Delete a stored file; returns whether anything was removed."""

        try:
            self.resolve(relative_path).unlink()
        except FileNotFoundError:
            return False
        logger.info("Discarded upload", extra={"image_path": relative_path})
        return True


__all__ = ["ImageStore", "URL_PREFIX"]
