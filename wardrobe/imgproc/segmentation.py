"""Background removal through an asynchronous prediction API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

import httpx

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class BackgroundRemovalError(RuntimeError):
    """Raised when the background removal job cannot be completed."""


class BackgroundRemovalFailed(BackgroundRemovalError):
    """The remote job finished in the ``failed`` or ``canceled`` state."""

    def __init__(self, remote_error: str) -> None:
        self.remote_error = remote_error
        super().__init__(f"Background removal failed: {remote_error}")


class BackgroundRemovalTimeout(BackgroundRemovalError):
    """The job did not finish within the polling budget."""


class InvalidPredictionResponse(BackgroundRemovalError):
    """The prediction API returned a body we cannot interpret."""


class BackgroundRemover(Protocol):
    """Strips the background from the image behind a public URL."""

    async def remove_background(self, source_url: str, on_progress: ProgressCallback | None = None) -> bytes:
        ...


class ReplicateBackgroundRemover:
    """Creates a prediction, polls it to a terminal state and downloads the output."""

    def __init__(
        self,
        *,
        api_token: str,
        model_version: str,
        base_url: str = "https://api.replicate.com/v1",
        http: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        max_attempts: int = 60,
        fast_attempts: int = 10,
        fast_interval: float = 1.0,
        slow_interval: float = 2.0,
    ) -> None:
        if not api_token:
            raise RuntimeError("Replicate API token is not configured.")

        self._model_version = model_version
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Token {api_token}"}
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self.max_attempts = max_attempts
        self.fast_attempts = fast_attempts
        self.fast_interval = fast_interval
        self.slow_interval = slow_interval

    async def remove_background(self, source_url: str, on_progress: ProgressCallback | None = None) -> bytes:
        """Return the processed image bytes for ``source_url``."""

        prediction_id = await self._create_prediction(source_url)
        logger.info("Background removal prediction %s created", prediction_id)
        output_url = await self._poll(prediction_id, on_progress)
        return await self._download(output_url)

    async def ping(self) -> bool:
        """Return ``True`` when the API accepts the configured token."""

        response = await self._http.get(f"{self._base_url}/account", headers=self._headers)
        return response.status_code == 200

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._http.aclose()

    async def _create_prediction(self, source_url: str) -> str:
        body = {"version": self._model_version, "input": {"image": source_url}}
        payload = await self._request_json("POST", f"{self._base_url}/predictions", json_body=body)
        prediction_id = payload.get("id")
        if not isinstance(prediction_id, str) or not prediction_id:
            raise InvalidPredictionResponse("Prediction response has no id.")
        return prediction_id

    async def _poll(self, prediction_id: str, on_progress: ProgressCallback | None) -> str:
        url = f"{self._base_url}/predictions/{prediction_id}"
        for attempt in range(self.max_attempts):
            payload = await self._request_json("GET", url)
            status = payload.get("status")
            if on_progress is not None:
                on_progress((attempt + 1) / self.max_attempts)

            if status == "succeeded":
                return _output_url(payload.get("output"))
            if status in ("failed", "canceled"):
                remote_error = payload.get("error") or "Unknown error"
                raise BackgroundRemovalFailed(str(remote_error))
            if status in ("starting", "processing"):
                delay = self.fast_interval if attempt < self.fast_attempts else self.slow_interval
                await asyncio.sleep(delay)
                continue
            raise InvalidPredictionResponse(f"Unexpected prediction status: {status!r}")

        raise BackgroundRemovalTimeout(
            f"Background removal did not finish after {self.max_attempts} status checks.",
        )

    async def _download(self, output_url: str) -> bytes:
        try:
            response = await self._http.get(output_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BackgroundRemovalError(
                f"Downloading the processed image failed with HTTP {exc.response.status_code}.",
            ) from exc
        except httpx.TransportError as exc:
            raise BackgroundRemovalError(f"Network error while downloading the processed image: {exc}") from exc
        if not response.content:
            raise InvalidPredictionResponse("Processed image download was empty.")
        return response.content

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(method, url, json=json_body, headers=self._headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise BackgroundRemovalError(
                f"Prediction API returned HTTP {exc.response.status_code}: {exc.response.text}",
            ) from exc
        except httpx.TransportError as exc:
            raise BackgroundRemovalError(f"Network error talking to the prediction API: {exc}") from exc
        except ValueError as exc:
            raise InvalidPredictionResponse("Prediction API returned a non-JSON body.") from exc

        if not isinstance(payload, dict):
            raise InvalidPredictionResponse("Prediction API returned an unexpected JSON shape.")
        return payload


def _output_url(output: Any) -> str:
    if isinstance(output, list) and output:
        output = output[0]
    if isinstance(output, str) and output.startswith(("http://", "https://")):
        return output
    raise InvalidPredictionResponse("Succeeded prediction has no output URL.")


class StaticBackgroundRemover:
    """Fake remover returning preset bytes or raising a preset error."""

    def __init__(self, result: bytes = b"", error: Exception | None = None) -> None:
        self._result = result
        self._error = error
        self.calls: list[str] = []

    async def remove_background(self, source_url: str, on_progress: ProgressCallback | None = None) -> bytes:
        self.calls.append(source_url)
        if self._error is not None:
            raise self._error
        if on_progress is not None:
            on_progress(1.0)
        return self._result
