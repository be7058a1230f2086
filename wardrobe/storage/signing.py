"""AWS Signature Version 4 headers for S3-compatible object storage requests."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials


@dataclass(frozen=True, slots=True)
class SigV4Signer:
    """Produces signed headers for a single request. Holds read-only key material.

    Only ``host``, ``x-amz-content-sha256`` and ``x-amz-date`` are signed, so
    the caller may add ``Content-Type`` and ``Cache-Control`` afterwards. The
    timestamp comes from botocore's clock at signing time.
    """

    access_key_id: str
    secret_access_key: str
    region: str
    service: str = "s3"

    def sign(self, method: str, url: str, payload: bytes) -> dict[str, str]:
        """Return the ``x-amz-*`` and ``Authorization`` headers for the request."""

        if not self.access_key_id or not self.secret_access_key:
            raise RuntimeError("Object storage credentials are not configured.")
        if not urlsplit(url).hostname:
            raise ValueError(f"Cannot sign a request without a host: {url!r}")

        request = AWSRequest(method=method.upper(), url=url, data=payload)
        auth = S3SigV4Auth(
            Credentials(self.access_key_id, self.secret_access_key),
            self.service,
            self.region,
        )
        auth.add_auth(request)

        return {
            "x-amz-date": request.headers["X-Amz-Date"],
            "x-amz-content-sha256": request.headers["X-Amz-Content-SHA256"],
            "Authorization": request.headers["Authorization"],
        }
