"""Tests for resizing and compressing captured photos."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from wardrobe.imgproc.normalize import (
    ImageNormalizer,
    ImageTooLargeError,
    InvalidImageError,
    extension_for,
    sniff_content_type,
)


def test_large_photo_fits_budget(large_photo_bytes: bytes) -> None:
    assert len(large_photo_bytes) > 200 * 1024

    result = ImageNormalizer().normalize(large_photo_bytes)

    assert len(result) <= 200 * 1024
    assert sniff_content_type(result) == "image/jpeg"
    with Image.open(BytesIO(result)) as img:
        assert max(img.size) <= 600


def test_small_photo_keeps_its_size(photo_bytes: bytes) -> None:
    result = ImageNormalizer().normalize(photo_bytes)

    with Image.open(BytesIO(result)) as img:
        assert img.size == (320, 240)


def test_aspect_ratio_is_preserved() -> None:
    buffer = BytesIO()
    Image.new("RGB", (1800, 900), (10, 200, 10)).save(buffer, format="PNG")

    result = ImageNormalizer().normalize(buffer.getvalue())

    with Image.open(BytesIO(result)) as img:
        assert img.size == (600, 300)


def test_output_is_deterministic(large_photo_bytes: bytes) -> None:
    normalizer = ImageNormalizer()

    assert normalizer.normalize(large_photo_bytes) == normalizer.normalize(large_photo_bytes)


def test_impossible_budget_raises(photo_bytes: bytes) -> None:
    with pytest.raises(ImageTooLargeError) as exc_info:
        ImageNormalizer(max_bytes=100).normalize(photo_bytes)

    assert exc_info.value.budget == 100
    assert exc_info.value.size > 100


def test_undecodable_bytes_are_rejected() -> None:
    with pytest.raises(InvalidImageError):
        ImageNormalizer().normalize(b"definitely not an image")


def test_pixel_bomb_is_rejected_as_invalid(monkeypatch: pytest.MonkeyPatch, photo_bytes: bytes) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    with pytest.raises(InvalidImageError, match="too large"):
        ImageNormalizer().normalize(photo_bytes)


def test_sniffing_and_extensions(cutout_png_bytes: bytes) -> None:
    assert sniff_content_type(cutout_png_bytes) == "image/png"
    assert sniff_content_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
    assert sniff_content_type(b"") == "application/octet-stream"
    assert extension_for("image/png") == "png"
    assert extension_for("image/jpeg") == "jpg"
    assert extension_for("application/octet-stream") == "bin"
