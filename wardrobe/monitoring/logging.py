"""Logging configuration module."""

from __future__ import annotations

import logging

from wardrobe.config.settings import Settings


def configure_logging(settings: Settings) -> None:
    """Configure root logger according to project conventions."""

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx logs every request line at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
