"""Shared fixtures for the wardrobe test-suite."""

from __future__ import annotations

import random
from io import BytesIO

import pytest
from PIL import Image

from wardrobe.services.stages import UploadState, overall_progress


class RecordingObserver:
    """Keeps every state it is told about, in order."""

    def __init__(self) -> None:
        self.states: list[UploadState] = []

    def on_state(self, state: UploadState) -> None:
        self.states.append(state)

    @property
    def progress(self) -> list[float]:
        return [overall_progress(state) for state in self.states]


def noise_image(width: int, height: int, *, seed: int = 7) -> Image.Image:
    rng = random.Random(seed)
    return Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))


def encode(image: Image.Image, fmt: str = "JPEG", **params) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(scope="session")
def photo_bytes() -> bytes:
    """A small, easily compressible JPEG."""

    return encode(Image.new("RGB", (320, 240), (40, 90, 200)), quality=90)


@pytest.fixture(scope="session")
def large_photo_bytes() -> bytes:
    """A noisy 1200x1200 JPEG well above the 200 KB budget."""

    return encode(noise_image(1200, 1200), quality=95)


@pytest.fixture(scope="session")
def cutout_png_bytes() -> bytes:
    """A transparent PNG like the background-removal output."""

    return encode(Image.new("RGBA", (64, 64), (255, 0, 0, 0)), fmt="PNG")
