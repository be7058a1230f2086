"""Connectivity checks for the external AI providers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from wardrobe.catalog.classifier import OpenAIClothingClassifier
from wardrobe.config.settings import Settings, get_settings
from wardrobe.imgproc.segmentation import ReplicateBackgroundRemover


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_analysis_model(settings: Settings | None = None) -> IntegrationCheckResult:
    """Ping the attribute analysis model provider."""

    settings = settings or get_settings()

    async def _ping() -> bool:
        client = OpenAIClothingClassifier(
            api_key=settings.analysis_api_key,
            model=settings.analysis_model,
            base_url=settings.analysis_base_url,
            timeout=settings.request_timeout,
        )
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="Clothing analysis",
        factory=_ping,
        success_message="Analysis API is reachable.",
    )


async def check_background_removal(settings: Settings | None = None) -> IntegrationCheckResult:
    """Ping the background removal prediction API."""

    settings = settings or get_settings()

    async def _ping() -> bool:
        client = ReplicateBackgroundRemover(
            api_token=settings.replicate_api_token,
            model_version=settings.replicate_model_version,
            base_url=settings.replicate_base_url,
            timeout=settings.request_timeout,
        )
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="Background removal",
        factory=_ping,
        success_message="Replicate API is reachable.",
    )


async def run_all_checks(settings: Settings | None = None) -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    settings = settings or get_settings()
    return list(await asyncio.gather(check_analysis_model(settings), check_background_removal(settings)))
