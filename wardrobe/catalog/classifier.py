"""Garment attribute analysis backed by a vision-capable chat model."""

from __future__ import annotations

import base64
import logging
from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from wardrobe.catalog.attribute_extractor import AnalysisError, AnalysisResult, parse_analysis_response
from wardrobe.imgproc.normalize import sniff_content_type

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """Bu kıyafeti analiz et ve sonucu JSON formatında ver. Türkçe terimler kullan.

JSON format:
{
    "category": "Tişört|Gömlek|Pantolon|Etek|Elbise|Mont|vb",
    "mainColor": "Ana renk",
    "secondaryColors": ["Yan renkler listesi"],
    "style": "Minimalist|Klasik|Trend|Bohem|Sportif|Şık|Rahat|Vintage|Preppy|Cesur",
    "occasionTypes": ["İş|Günlük|Resmi|Spor|Akşam|Plaj|Seyahat|Randevu|Parti|Toplantı|Düğün|Alışveriş"],
    "weatherSuitability": ["Sıcak|Ilık|Serin|Soğuk|Yağmurlu|Karlı|Rüzgarlı"],
    "fabricType": "Pamuk, polyester, denim vb",
    "texture": "Düz, çizgili, desenli vb",
    "description": "Kısa açıklama"
}

Sadece JSON formatında cevap ver, başka metin ekleme."""


class ClothingClassifier(Protocol):
    """Infers garment attributes from image bytes."""

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        ...


class OpenAIClothingClassifier:
    """Sends the garment photo and a fixed prompt to an OpenAI-compatible model."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if client is None and not api_key:
            raise RuntimeError("Analysis API key is not configured.")

        self._model = model
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url.rstrip("/") if base_url else None,
            timeout=timeout,
        )

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        """Return the attributes the model infers for ``image_bytes``."""

        data_url = _as_data_url(image_bytes)
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": ANALYSIS_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    },
                ],
                max_tokens=600,
            )
        except OpenAIError as exc:
            raise AnalysisError(f"Analysis request failed: {exc}") from exc

        if not response.choices:
            raise AnalysisError("Analysis model returned no choices.")
        content = response.choices[0].message.content
        logger.debug("Analysis model replied with %d characters", len(content or ""))
        return parse_analysis_response(content)

    async def ping(self) -> bool:
        """Return ``True`` if the upstream service responds to a model listing call."""

        models = await self._client.models.list()
        return bool(models.data)

    async def close(self) -> None:
        """Release HTTP resources."""

        await self._client.close()


class StaticClothingClassifier:
    """Fake classifier returning a preset result or raising a preset error."""

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None) -> None:
        self._result = result or AnalysisResult()
        self._error = error
        self.calls: list[bytes] = []

    async def analyze(self, image_bytes: bytes) -> AnalysisResult:
        self.calls.append(image_bytes)
        if self._error is not None:
            raise self._error
        return self._result


def _as_data_url(image_bytes: bytes) -> str:
    content_type = sniff_content_type(image_bytes)
    if not content_type.startswith("image/"):
        content_type = "image/jpeg"
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{content_type};base64,{encoded}"
