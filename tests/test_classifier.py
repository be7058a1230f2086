"""Tests for the OpenAI-backed clothing classifier."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
import pytest_mock
from openai import APIConnectionError

from wardrobe.catalog.attribute_extractor import AnalysisError
from wardrobe.catalog.classifier import ANALYSIS_PROMPT, OpenAIClothingClassifier
from wardrobe.catalog.taxonomy import ClothingCategory


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def client(mocker: pytest_mock.MockerFixture):
    fake = mocker.MagicMock()
    fake.chat.completions.create = mocker.AsyncMock()
    fake.models.list = mocker.AsyncMock()
    fake.close = mocker.AsyncMock()
    return fake


@pytest.mark.asyncio
async def test_analyze_sends_prompt_and_image(client, photo_bytes: bytes) -> None:
    client.chat.completions.create.return_value = _completion(
        json.dumps({"category": "Tişört", "mainColor": "Mavi"}, ensure_ascii=False),
    )
    classifier = OpenAIClothingClassifier(api_key="", model="vision-model", client=client)

    result = await classifier.analyze(photo_bytes)

    assert result.category is ClothingCategory.TSHIRT
    assert result.main_color == "Mavi"
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "vision-model"
    content = kwargs["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": ANALYSIS_PROMPT}
    assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


@pytest.mark.asyncio
async def test_transport_failure_becomes_analysis_error(
    client,
    mocker: pytest_mock.MockerFixture,
    photo_bytes: bytes,
) -> None:
    client.chat.completions.create.side_effect = APIConnectionError(request=mocker.MagicMock())
    classifier = OpenAIClothingClassifier(api_key="", model="m", client=client)

    with pytest.raises(AnalysisError):
        await classifier.analyze(photo_bytes)


@pytest.mark.asyncio
async def test_empty_choices_raise(client, photo_bytes: bytes) -> None:
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    classifier = OpenAIClothingClassifier(api_key="", model="m", client=client)

    with pytest.raises(AnalysisError):
        await classifier.analyze(photo_bytes)


@pytest.mark.asyncio
async def test_ping_and_close(client) -> None:
    client.models.list.return_value = SimpleNamespace(data=[SimpleNamespace(id="m")])
    classifier = OpenAIClothingClassifier(api_key="", model="m", client=client)

    assert await classifier.ping() is True
    await classifier.close()

    client.close.assert_awaited_once()


def test_missing_api_key_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        OpenAIClothingClassifier(api_key="", model="m")
