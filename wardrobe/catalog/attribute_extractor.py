"""Turn free-form model output into structured garment attributes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from wardrobe.catalog.taxonomy import ClothingCategory, OccasionType, StyleType, WeatherSuitability

E = TypeVar("E", bound=Enum)


class AnalysisError(RuntimeError):
    """Raised when the analysis model returns no usable JSON object."""


@dataclass(slots=True)
class AnalysisResult:
    """Attributes inferred for one garment. Every field may be absent."""

    category: ClothingCategory | None = None
    main_color: str | None = None
    secondary_colors: list[str] | None = None
    style: StyleType | None = None
    occasion_types: list[OccasionType] | None = None
    weather_suitability: list[WeatherSuitability] | None = None
    fabric_type: str | None = None
    texture: str | None = None
    description: str | None = None


# Checked in order: "t-shirt" must win over the bare "shirt" substring.
_CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], ClothingCategory], ...] = (
    (("tişört", "t-shirt"), ClothingCategory.TSHIRT),
    (("gömlek", "shirt"), ClothingCategory.SHIRT),
    (("pantolon", "jean"), ClothingCategory.TROUSERS),
    (("etek",), ClothingCategory.SKIRT),
    (("elbise",), ClothingCategory.DRESS),
    (("mont", "ceket"), ClothingCategory.JACKET),
    (("ayakkabı",), ClothingCategory.SNEAKERS),
)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model tends to wrap JSON in."""

    return text.strip().replace("```json", "").replace("```", "").strip()


def match_category(raw_value: str | None) -> ClothingCategory | None:
    """Map a free-text category to the closed vocabulary, or ``None``."""

    if not raw_value:
        return None
    try:
        return ClothingCategory(raw_value)
    except ValueError:
        pass

    lowered = raw_value.lower()
    for keywords, category in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            if category is ClothingCategory.TROUSERS and "kot" in lowered:
                return ClothingCategory.JEANS
            return category
    return None


def _match_exact(enum_cls: type[E], raw_value: Any) -> E | None:
    if not isinstance(raw_value, str):
        return None
    try:
        return enum_cls(raw_value)
    except ValueError:
        return None


def _match_many(enum_cls: type[E], raw_values: Any) -> list[E] | None:
    if not isinstance(raw_values, list):
        return None
    matched: list[E] = []
    for raw in raw_values:
        value = _match_exact(enum_cls, raw)
        if value is not None and value not in matched:
            matched.append(value)
    return matched


def _as_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_text_list(values: Any) -> list[str] | None:
    if not isinstance(values, list):
        return None
    return [item.strip() for item in values if isinstance(item, str) and item.strip()]


def attributes_from_payload(payload: dict[str, Any]) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from the decoded JSON object."""

    category_raw = payload.get("category")
    return AnalysisResult(
        category=match_category(category_raw if isinstance(category_raw, str) else None),
        main_color=_as_text(payload.get("mainColor")),
        secondary_colors=_as_text_list(payload.get("secondaryColors")),
        style=_match_exact(StyleType, payload.get("style")),
        occasion_types=_match_many(OccasionType, payload.get("occasionTypes")),
        weather_suitability=_match_many(WeatherSuitability, payload.get("weatherSuitability")),
        fabric_type=_as_text(payload.get("fabricType")),
        texture=_as_text(payload.get("texture")),
        description=_as_text(payload.get("description")),
    )


def parse_analysis_response(text: str | None) -> AnalysisResult:
    """Parse the raw model reply into an :class:`AnalysisResult`."""

    if not text or not text.strip():
        raise AnalysisError("Analysis model returned an empty response.")

    cleaned = strip_code_fences(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AnalysisError("Analysis response is not valid JSON.") from exc

    if not isinstance(payload, dict):
        raise AnalysisError("Analysis response is not a JSON object.")
    return attributes_from_payload(payload)

