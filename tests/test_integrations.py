"""Tests for external integration connectivity helpers."""

from __future__ import annotations

import pytest
import pytest_mock

from wardrobe.config.settings import Settings
from wardrobe.integrations.checks import (
    check_analysis_model,
    check_background_removal,
    run_all_checks,
)

SETTINGS = Settings(analysis_api_key="test-key", replicate_api_token="r8_test")


@pytest.mark.asyncio
async def test_check_analysis_model_success(mocker: pytest_mock.MockerFixture) -> None:
    client_mock = mocker.patch("wardrobe.integrations.checks.OpenAIClothingClassifier", autospec=True)
    instance = client_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=True)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_analysis_model(SETTINGS)

    assert result.success
    instance.ping.assert_awaited_once()
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_background_removal_failure(mocker: pytest_mock.MockerFixture) -> None:
    client_mock = mocker.patch("wardrobe.integrations.checks.ReplicateBackgroundRemover", autospec=True)
    instance = client_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=False)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_background_removal(SETTINGS)

    assert not result.success
    assert "non-success" in result.message.lower()
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_unconfigured_provider_reports_error() -> None:
    results = await run_all_checks(Settings())

    assert [result.success for result in results] == [False, False]
    assert "not configured" in results[0].message
    assert "not configured" in results[1].message
