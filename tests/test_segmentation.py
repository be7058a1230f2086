"""Tests for the background removal prediction client."""

from __future__ import annotations

import json

import httpx
import pytest

from wardrobe.imgproc.segmentation import (
    BackgroundRemovalError,
    BackgroundRemovalFailed,
    BackgroundRemovalTimeout,
    InvalidPredictionResponse,
    ReplicateBackgroundRemover,
)

BASE_URL = "https://replicate.test/v1"
OUTPUT_URL = "https://delivery.test/out.png"


def _remover(handler, *, max_attempts: int = 60) -> ReplicateBackgroundRemover:
    return ReplicateBackgroundRemover(
        api_token="r8_token",
        model_version="version-hash",
        base_url=BASE_URL,
        http=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        max_attempts=max_attempts,
        fast_interval=0,
        slow_interval=0,
    )


def _prediction_handler(statuses: list[dict], *, created: dict | None = None, download: bytes = b"png-bytes"):
    polls = iter(statuses)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(201, json=created if created is not None else {"id": "pred-1", "status": "starting"})
        if str(request.url) == OUTPUT_URL:
            return httpx.Response(200, content=download)
        return httpx.Response(200, json=next(polls))

    return handler, requests


@pytest.mark.asyncio
async def test_successful_prediction_downloads_output() -> None:
    handler, requests = _prediction_handler(
        [
            {"id": "pred-1", "status": "starting"},
            {"id": "pred-1", "status": "processing"},
            {"id": "pred-1", "status": "succeeded", "output": OUTPUT_URL},
        ],
    )
    progress: list[float] = []

    result = await _remover(handler).remove_background("https://cdn.test/original.jpg", on_progress=progress.append)

    assert result == b"png-bytes"
    create = requests[0]
    assert create.url == f"{BASE_URL}/predictions"
    assert create.headers["Authorization"] == "Token r8_token"
    assert json.loads(create.content) == {
        "version": "version-hash",
        "input": {"image": "https://cdn.test/original.jpg"},
    }
    assert [r.url.path for r in requests[1:4]] == ["/v1/predictions/pred-1"] * 3
    assert progress == [1 / 60, 2 / 60, 3 / 60]


@pytest.mark.asyncio
async def test_list_output_is_accepted() -> None:
    handler, _ = _prediction_handler([{"status": "succeeded", "output": [OUTPUT_URL]}])

    assert await _remover(handler).remove_background("https://cdn.test/a.jpg") == b"png-bytes"


@pytest.mark.asyncio
async def test_failed_prediction_carries_remote_error() -> None:
    handler, _ = _prediction_handler([{"status": "failed", "error": "CUDA out of memory"}])

    with pytest.raises(BackgroundRemovalFailed) as exc_info:
        await _remover(handler).remove_background("https://cdn.test/a.jpg")

    assert exc_info.value.remote_error == "CUDA out of memory"


@pytest.mark.asyncio
async def test_canceled_prediction_without_error_text() -> None:
    handler, _ = _prediction_handler([{"status": "canceled"}])

    with pytest.raises(BackgroundRemovalFailed) as exc_info:
        await _remover(handler).remove_background("https://cdn.test/a.jpg")

    assert exc_info.value.remote_error == "Unknown error"


@pytest.mark.asyncio
async def test_polling_gives_up_after_attempt_budget() -> None:
    handler, requests = _prediction_handler([{"status": "processing"}] * 5)

    with pytest.raises(BackgroundRemovalTimeout):
        await _remover(handler, max_attempts=5).remove_background("https://cdn.test/a.jpg")

    assert len(requests) == 6


@pytest.mark.asyncio
async def test_unknown_status_is_invalid() -> None:
    handler, _ = _prediction_handler([{"status": "queued-forever"}])

    with pytest.raises(InvalidPredictionResponse):
        await _remover(handler).remove_background("https://cdn.test/a.jpg")


@pytest.mark.asyncio
async def test_missing_prediction_id_is_invalid() -> None:
    handler, _ = _prediction_handler([], created={"status": "starting"})

    with pytest.raises(InvalidPredictionResponse):
        await _remover(handler).remove_background("https://cdn.test/a.jpg")


@pytest.mark.asyncio
async def test_http_error_on_create_is_wrapped() -> None:
    remover = _remover(lambda request: httpx.Response(401, json={"detail": "Unauthenticated"}))

    with pytest.raises(BackgroundRemovalError) as exc_info:
        await remover.remove_background("https://cdn.test/a.jpg")

    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


def test_missing_token_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        ReplicateBackgroundRemover(api_token="", model_version="v")
