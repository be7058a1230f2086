"""Image normalisation helpers."""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageValidationError(ValueError):
    """Base class for images rejected before any network call."""


class InvalidImageError(ImageValidationError):
    """Raised when the payload cannot be decoded as an image."""


class ImageTooLargeError(ImageValidationError):
    """Raised when no compression setting fits the byte budget."""

    def __init__(self, size: int, budget: int) -> None:
        self.size = size
        self.budget = budget
        super().__init__(
            f"Image is too large ({size} bytes after compression, limit {budget} bytes). "
            "Please choose a simpler image.",
        )


class ImageNormalizer:
    """Scales and re-encodes captured photos to fit a byte budget."""

    def __init__(
        self,
        max_bytes: int = 200 * 1024,
        *,
        max_dimension: int = 600,
        fallback_dimension: int = 400,
        start_quality: int = 20,
        quality_step: int = 2,
        fallback_start_quality: int = 10,
        fallback_quality_step: int = 1,
        min_quality: int = 5,
    ) -> None:
        self.max_bytes = max_bytes
        self.max_dimension = max_dimension
        self.fallback_dimension = fallback_dimension
        self.start_quality = start_quality
        self.quality_step = quality_step
        self.fallback_start_quality = fallback_start_quality
        self.fallback_quality_step = fallback_quality_step
        self.min_quality = min_quality

    def normalize(self, image_bytes: bytes) -> bytes:
        """Return JPEG bytes no larger than ``max_bytes``.

        Raises :class:`InvalidImageError` for undecodable input and
        :class:`ImageTooLargeError` when every attempt stays over budget.
        """

        image = _decode(image_bytes)

        resized = _fit_within(image, self.max_dimension)
        quality = self.start_quality
        encoded = _encode_jpeg(resized, quality)
        while len(encoded) > self.max_bytes and quality > self.min_quality:
            quality -= self.quality_step
            encoded = _encode_jpeg(resized, max(quality, 1))

        if len(encoded) <= self.max_bytes:
            logger.debug("Normalised image to %d bytes at quality %d", len(encoded), quality)
            return encoded

        smaller = _fit_within(image, self.fallback_dimension)
        quality = self.fallback_start_quality
        while quality > self.min_quality:
            candidate = _encode_jpeg(smaller, quality)
            if len(candidate) <= self.max_bytes:
                logger.debug("Normalised image to %d bytes at fallback quality %d", len(candidate), quality)
                return candidate
            encoded = candidate
            quality -= self.fallback_quality_step

        raise ImageTooLargeError(len(encoded), self.max_bytes)


def _decode(image_bytes: bytes) -> Image.Image:
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            return oriented.convert("RGB")
    except Image.DecompressionBombError as exc:
        raise InvalidImageError("Image dimensions are too large to process.") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError("Image data could not be decoded.") from exc


def _fit_within(image: Image.Image, max_dimension: int) -> Image.Image:
    """Downscale so the long edge is at most ``max_dimension``, keeping aspect."""

    width, height = image.size
    if width <= max_dimension and height <= max_dimension:
        return image
    if width >= height:
        new_size = (max_dimension, max(1, round(height * max_dimension / width)))
    else:
        new_size = (max(1, round(width * max_dimension / height)), max_dimension)
    return image.resize(new_size, Image.Resampling.LANCZOS)


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def sniff_content_type(data: bytes) -> str:
    """Guess the MIME type from the leading magic bytes."""

    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def extension_for(content_type: str) -> str:
    """Return the file extension used in storage keys for ``content_type``."""

    return {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
    }.get(content_type, "bin")
