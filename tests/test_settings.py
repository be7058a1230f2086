"""Tests for environment-driven settings."""

from __future__ import annotations

import os

import pytest

from wardrobe.config.settings import DEFAULT_BACKGROUND_MODEL_VERSION, get_settings


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(os, "environ", dict(os.environ))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("S3_BUCKET", "IMAGE_MAX_BYTES", "REPLICATE_MODEL_VERSION", "COMPLETION_RESET_DELAY"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.s3_bucket == "clothing-images"
    assert settings.image_max_bytes == 200 * 1024
    assert settings.replicate_model_version == DEFAULT_BACKGROUND_MODEL_VERSION
    assert settings.completion_reset_delay == 0.0


def test_env_file_does_not_override_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    (tmp_path / ".env").write_text("S3_BUCKET=from-file\nANALYSIS_MODEL=from-file\n# comment\n", encoding="utf-8")
    monkeypatch.setenv("ANALYSIS_MODEL", "from-env")
    monkeypatch.delenv("S3_BUCKET", raising=False)

    settings = get_settings()

    assert settings.s3_bucket == "from-file"
    assert settings.analysis_model == "from-env"
    assert get_settings() is settings
