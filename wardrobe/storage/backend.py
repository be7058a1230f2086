"""Object storage interface, shared errors and an in-memory backend."""

from __future__ import annotations

import posixpath
from typing import Protocol

MAX_PUT_ATTEMPTS = 3


class StorageError(RuntimeError):
    """Base class for object storage failures."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class StorageUploadError(StorageError):
    """Raised when an object could not be written."""


class StorageDeleteError(StorageError):
    """Raised when an object could not be removed."""


class StorageBackend(Protocol):
    """Stores opaque blobs under keys and exposes them by public URL."""

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` and return the public URL of the key actually written."""

    async def delete(self, key: str) -> None:
        """Remove the object stored under ``key``."""

    def key_for_url(self, url: str) -> str | None:
        """Return the key behind a public URL produced by :meth:`put`."""


def suffixed_key(key: str, attempt: int) -> str:
    """Return the key used for retry ``attempt`` after a conflict.

    ``user/processed_ab12.png`` becomes ``user/processed_ab12_1.png`` on the
    first retry. Attempt ``0`` is the key itself.
    """

    if attempt <= 0:
        return key
    directory, name = posixpath.split(key)
    stem, ext = posixpath.splitext(name)
    return posixpath.join(directory, f"{stem}_{attempt}{ext}")


class InMemoryStorage:
    """Dictionary-backed storage with the same conflict policy as S3 uploads."""

    def __init__(self, public_base_url: str = "https://storage.test", bucket: str = "clothing-images") -> None:
        self._public_base_url = public_base_url.rstrip("/")
        self._bucket = bucket
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.put_calls: list[str] = []
        self.deleted: list[str] = []

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{self._bucket}/{key}"

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        for attempt in range(MAX_PUT_ATTEMPTS):
            candidate = suffixed_key(key, attempt)
            self.put_calls.append(candidate)
            if candidate in self.objects:
                continue
            self.objects[candidate] = (data, content_type)
            return self.public_url(candidate)
        raise StorageUploadError(f"Key conflict persisted after {MAX_PUT_ATTEMPTS} attempts: {key}", status_code=409)

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop(key, None)

    def key_for_url(self, url: str) -> str | None:
        prefix = f"{self._public_base_url}/{self._bucket}/"
        if url.startswith(prefix):
            return url[len(prefix):]
        return None
