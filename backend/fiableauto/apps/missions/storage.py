from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://via.placeholder.com/400x300/3b82f6/ffffff?text={label}"


class BlobStorage:
    """Stores photo bytes somewhere and returns a stable locator (URL)."""

    def store(self, content: bytes, *, key: str, metadata: dict) -> str:
        raise NotImplementedError


class PlaceholderStorage(BlobStorage):
    """Discards the bytes and hands back a placeholder image URL."""

    def store(self, content: bytes, *, key: str, metadata: dict) -> str:
        label = str(metadata.get("photo_type") or "photo")
        return PLACEHOLDER_URL.format(label=quote(label, safe=""))


class LocalDirectoryStorage(BlobStorage):
    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _target(self, key: str) -> Path:
        target = (self.root / key).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError(f"Storage key escapes the photo directory: {key}")
        return target

    def store(self, content: bytes, *, key: str, metadata: dict) -> str:
        target = self._target(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as out:
            out.write(content)
        logger.info("Stored mission photo", extra={"storage_key": key, "size": len(content)})
        return f"{self.base_url}/{key}"


def get_blob_storage() -> BlobStorage:
    backend = (os.getenv("MISSION_PHOTO_STORAGE") or "").strip().lower()
    if not backend or backend in {"placeholder", "mock", "none"}:
        return PlaceholderStorage()
    if backend == "local":
        return LocalDirectoryStorage(
            os.getenv("MISSION_PHOTO_DIR", "uploads/mission_photos"),
            os.getenv("MISSION_PHOTO_BASE_URL", "/media/mission_photos"),
        )
    raise ValueError(f"Unsupported photo storage backend: {backend}")
