"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_analysis_model,
    check_background_removal,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_analysis_model",
    "check_background_removal",
    "run_all_checks",
]
