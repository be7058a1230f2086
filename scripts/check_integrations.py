"""Run connectivity checks against the image and analysis providers."""

from __future__ import annotations

import asyncio
from typing import Iterable

from wardrobe.config.settings import get_settings
from wardrobe.integrations import IntegrationCheckResult, run_all_checks
from wardrobe.monitoring.logging import configure_logging


def _format_result(result: IntegrationCheckResult) -> str:
    status = "OK  " if result.success else "FAIL"
    return f"[{status}] {result.name}: {result.message}"


def print_results(results: Iterable[IntegrationCheckResult]) -> None:
    for result in results:
        print(_format_result(result))


def main() -> int:
    settings = get_settings()
    configure_logging(settings)
    results = asyncio.run(run_all_checks(settings))
    print_results(results)
    return 0 if all(result.success for result in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
