# app/services/file_store.py

import logging
import os
import secrets
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
_SUFFIX_ALPHABET = string.ascii_letters + string.digits


@dataclass
class StoredFile:
    ref: str
    size: int


class FileStore:
    """Blob area for file payloads, addressed by generated file name."""

    def __init__(self, root):
        self.root = Path(root)

    def _new_ref(self, original_name: str) -> str:
        ext = os.path.splitext(original_name or "")[1].lower()
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(10))
        return f"{int(time.time() * 1000)}-{suffix}{ext}"

    def path_for(self, ref: str) -> Path:
        # Only the base name is honoured so a ref can never escape the root
        return self.root / os.path.basename(str(ref or "").lstrip("/"))

    def exists(self, ref: str) -> bool:
        return self.path_for(ref).is_file()

    def save(self, stream: BinaryIO, original_name: str, max_bytes: int) -> StoredFile:
        """Copy ``stream`` into the store; nothing is left behind if it is too large."""
        self.root.mkdir(parents=True, exist_ok=True)
        ref = self._new_ref(original_name)
        path = self.path_for(ref)

        size = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise ValidationError(
                            f"File exceeds the {max_bytes // (1024 * 1024)} MB limit"
                        )
                    out.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        return StoredFile(ref=ref, size=size)

    def remove(self, ref: str) -> bool:
        """Delete the blob. Returns False when it was already gone."""
        try:
            self.path_for(ref).unlink()
        except FileNotFoundError:
            return False
        return True

    def discard(self, ref: str) -> None:
        """Best-effort removal used after a record is already gone."""
        try:
            self.remove(ref)
        except OSError:
            logger.warning("Failed to delete stored file %s", ref, exc_info=True)
