"""
Blob storage for uploaded files.

Files are written through a Django ``Storage`` (``default_storage`` unless
another one is injected) under ``settings.HMS_FILES_DIR`` and addressed by
their path relative to the storage root, which is what gets persisted on
the owning record.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from django.conf import settings
from django.core.files.storage import Storage, default_storage

logger = logging.getLogger(__name__)


class BlobStore:
    def __init__(self, storage: Optional[Storage] = None, directory: Optional[str] = None):
        self.storage = storage or default_storage
        self.directory = directory or settings.HMS_FILES_DIR

    def generate_name(self, prefix: str, original_name: str) -> str:
        """Return ``<dir>/<prefix>_<uuid hex>.<ext>`` for an upload."""
        ext = os.path.splitext(original_name or '')[1].lower()
        return f"{self.directory}/{prefix}_{uuid.uuid4().hex}{ext}"

    def save(self, upload, name_prefix: str) -> str:
        """Store ``upload`` and return the relative path it was written to.

        The storage may adjust the generated name if it already exists, so
        the returned value is the one to persist.
        """
        name = self.generate_name(name_prefix, getattr(upload, 'name', ''))
        if hasattr(upload, 'seek'):
            upload.seek(0)
        path = self.storage.save(name, upload)
        logger.debug("Stored blob %s", path)
        return path

    def delete(self, path: Optional[str]) -> None:
        """Remove a stored blob.  Missing paths are ignored."""
        if not path:
            return
        self.storage.delete(path)
        logger.debug("Deleted blob %s", path)

    def discard(self, path: Optional[str]) -> None:
        """Best-effort ``delete``: failures are logged, never raised."""
        try:
            self.delete(path)
        except OSError as exc:
            logger.warning("Could not delete blob %s: %s", path, exc)

    def exists(self, path: Optional[str]) -> bool:
        return bool(path) and self.storage.exists(path)

    def url(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        return self.storage.url(path)


def get_blob_store() -> BlobStore:
    return BlobStore()
