"""
Invoicing Documents - Storage
=============================
Protocol + filesystem and InMemory blob storage.

Doctrine:
- store() returns a URL the invoice can keep.
- Storing the same name twice replaces the blob; a rendered invoice is a
  reproducible artifact, the invoice row is the record.
- Names are relative paths; absolute paths and '..' are rejected.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

from invoicing.errors import DocumentDeliveryError

logger = logging.getLogger("invoicing.documents")


class Storage(Protocol):
    def store(self, data: bytes, suggested_name: str) -> str:
        ...


def _safe_name(suggested_name: str) -> PurePosixPath:
    path = PurePosixPath(suggested_name)
    if not suggested_name or path.is_absolute() or ".." in path.parts:
        raise DocumentDeliveryError(f"Unsafe document name '{suggested_name}'.")
    return path


class FileSystemStorage:
    """
    Writes blobs under root. URLs are base_url + name when base_url is
    given, file:// URIs otherwise.
    """

    def __init__(self, root: Path | str, base_url: Optional[str] = None):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/") if base_url else None

    def store(self, data: bytes, suggested_name: str) -> str:
        relative = _safe_name(suggested_name)
        target = self._root.joinpath(*relative.parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file then rename: readers never see half a PDF.
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".part")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise DocumentDeliveryError(
                f"Could not store {suggested_name}: {exc}", cause=exc
            ) from exc

        logger.debug("Stored %s (%d bytes)", target, len(data))
        if self._base_url:
            return f"{self._base_url}/{relative.as_posix()}"
        return target.resolve().as_uri()


class InMemoryStorage:

    def __init__(self, base_url: str = "memory://documents"):
        self._lock = threading.Lock()
        self._base_url = base_url.rstrip("/")
        self._blobs: dict[str, bytes] = {}

    def store(self, data: bytes, suggested_name: str) -> str:
        name = _safe_name(suggested_name).as_posix()
        with self._lock:
            self._blobs[name] = bytes(data)
        return f"{self._base_url}/{name}"

    def get(self, name: str) -> bytes:
        with self._lock:
            return self._blobs[name]

    @property
    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)
