"""Domain records exchanged between the pipeline, the store and callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from wardrobe.catalog.taxonomy import ClothingCategory, OccasionType, StyleType, WeatherSuitability


class ClothingItem(BaseModel):
    """A persisted wardrobe entry. Immutable once returned to the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    image_url: str
    original_image_url: str | None = None
    description: str | None = None
    category: ClothingCategory | None = None
    color: str | None = None
    secondary_colors: list[str] | None = None
    style: StyleType | None = None
    occasion_types: list[OccasionType] | None = None
    weather_suitability: list[WeatherSuitability] | None = None
    fabric_type: str | None = None
    texture: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Caller-supplied switches for a single upload."""

    should_remove_background: bool = True
    category: ClothingCategory | None = None
