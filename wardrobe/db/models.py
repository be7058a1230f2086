"""SQLAlchemy models describing the wardrobe tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for ORM models."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ClothingItemRow(Base):
    """One garment in a user's wardrobe."""

    __tablename__ = "clothing_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    original_image_url: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(64))
    color: Mapped[str | None] = mapped_column(String(64))
    secondary_colors: Mapped[list[str] | None] = mapped_column(JSON)
    style: Mapped[str | None] = mapped_column(String(32))
    occasion_types: Mapped[list[str] | None] = mapped_column(JSON)
    weather_suitability: Mapped[list[str] | None] = mapped_column(JSON)
    fabric_type: Mapped[str | None] = mapped_column(String(64))
    texture: Mapped[str | None] = mapped_column(String(64))
