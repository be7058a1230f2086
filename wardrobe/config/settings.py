"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_BACKGROUND_MODEL_VERSION = "fb8af171cfa1616ddcf1242c093f9c46bcada5ad4cf6f2fbe8b81b330ec5c003"


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./data/wardrobe.db"

    supabase_url: str = ""
    supabase_anon_key: str = ""

    s3_endpoint: str = ""
    s3_public_base_url: str = ""
    s3_bucket: str = "clothing-images"
    s3_region: str = "us-east-1"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""

    replicate_api_token: str = ""
    replicate_base_url: str = "https://api.replicate.com/v1"
    replicate_model_version: str = DEFAULT_BACKGROUND_MODEL_VERSION

    analysis_api_key: str = ""
    analysis_base_url: str = "https://api.openai.com/v1"
    analysis_model: str = "gpt-4o-mini"

    request_timeout: float = 60.0
    image_max_bytes: int = 200 * 1024
    image_max_dimension: int = 600
    image_fallback_dimension: int = 400
    # Pause before an orchestrator returns to idle. HTTP responses need none.
    completion_reset_delay: float = 0.0


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/wardrobe.db"),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        s3_endpoint=os.getenv("S3_ENDPOINT", ""),
        s3_public_base_url=os.getenv("S3_PUBLIC_BASE_URL", ""),
        s3_bucket=os.getenv("S3_BUCKET", "clothing-images"),
        s3_region=os.getenv("S3_REGION", "us-east-1"),
        s3_access_key_id=os.getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=os.getenv("S3_SECRET_ACCESS_KEY", ""),
        replicate_api_token=os.getenv("REPLICATE_API_TOKEN", ""),
        replicate_base_url=os.getenv("REPLICATE_BASE_URL", "https://api.replicate.com/v1"),
        replicate_model_version=os.getenv("REPLICATE_MODEL_VERSION", DEFAULT_BACKGROUND_MODEL_VERSION),
        analysis_api_key=os.getenv("ANALYSIS_API_KEY", ""),
        analysis_base_url=os.getenv("ANALYSIS_BASE_URL", "https://api.openai.com/v1"),
        analysis_model=os.getenv("ANALYSIS_MODEL", "gpt-4o-mini"),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
        image_max_bytes=int(os.getenv("IMAGE_MAX_BYTES", str(200 * 1024))),
        image_max_dimension=int(os.getenv("IMAGE_MAX_DIMENSION", "600")),
        image_fallback_dimension=int(os.getenv("IMAGE_FALLBACK_DIMENSION", "400")),
        completion_reset_delay=float(os.getenv("COMPLETION_RESET_DELAY", "0")),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
