"""S3-compatible object storage client with SigV4 request signing."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote, unquote

import httpx

from wardrobe.storage.backend import (
    MAX_PUT_ATTEMPTS,
    StorageDeleteError,
    StorageUploadError,
    suffixed_key,
)
from wardrobe.storage.signing import SigV4Signer

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    """Uploads and deletes objects through the S3 protocol endpoint.

    A ``409 Conflict`` on upload is retried under a suffixed key, transport
    failures are retried on the same key after ``retry_delay`` seconds. At
    most :data:`MAX_PUT_ATTEMPTS` requests are sent per object. The URL
    returned by :meth:`put` always names the key that was actually written.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        public_base_url: str,
        bucket: str,
        signer: SigV4Signer,
        http: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        retry_delay: float = 0.5,
    ) -> None:
        if not endpoint:
            raise RuntimeError("Object storage endpoint is not configured.")

        self._endpoint = endpoint.rstrip("/")
        self._public_base_url = (public_base_url or endpoint).rstrip("/")
        self._bucket = bucket
        self._signer = signer
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._retry_delay = retry_delay

    def object_url(self, key: str) -> str:
        return f"{self._endpoint}/{self._bucket}/{quote(key, safe='/-_.~')}"

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{self._bucket}/{quote(key, safe='/-_.~')}"

    def key_for_url(self, url: str) -> str | None:
        prefix = f"{self._public_base_url}/{self._bucket}/"
        if not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):])

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """Upload ``data`` and return the public URL of the key actually used."""

        attempt_key = key
        conflicts = 0
        last_error: StorageUploadError | None = None

        for attempt in range(1, MAX_PUT_ATTEMPTS + 1):
            try:
                response = await self._send("PUT", attempt_key, data, {
                    "Content-Type": content_type,
                    "Cache-Control": "3600",
                })
            except httpx.TransportError as exc:
                last_error = StorageUploadError(f"Network error while uploading {attempt_key}: {exc}")
                last_error.__cause__ = exc
                logger.warning("Upload of %s failed on attempt %d: %s", attempt_key, attempt, exc)
                if attempt < MAX_PUT_ATTEMPTS:
                    await asyncio.sleep(self._retry_delay)
                continue

            if response.status_code in (200, 201):
                if attempt_key != key:
                    logger.info("Stored %s under retry key %s", key, attempt_key)
                return self.public_url(attempt_key)

            if response.status_code == 409:
                conflicts += 1
                last_error = StorageUploadError(
                    f"HTTP 409: {response.text}",
                    status_code=409,
                    body=response.text,
                )
                logger.warning("Key %s already exists; retrying with a suffixed key", attempt_key)
                attempt_key = suffixed_key(key, conflicts)
                continue

            raise StorageUploadError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        if last_error is None:
            raise StorageUploadError(f"Upload of {key} was not attempted.")
        raise last_error

    async def delete(self, key: str) -> None:
        """Delete ``key``. Succeeds on 200 or 204."""

        try:
            response = await self._send("DELETE", key, b"", {})
        except httpx.TransportError as exc:
            raise StorageDeleteError(f"Network error while deleting {key}: {exc}") from exc

        if response.status_code not in (200, 204):
            raise StorageDeleteError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._http.aclose()

    async def _send(self, method: str, key: str, payload: bytes, extra_headers: dict[str, str]) -> httpx.Response:
        url = self.object_url(key)
        headers = dict(extra_headers)
        headers.update(self._signer.sign(method, url, payload))
        return await self._http.request(method, url, content=payload, headers=headers)
