"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


uploads_total = Counter(
    "wardrobe_uploads_total",
    "Clothing uploads that reached a terminal state.",
    ["outcome"],
)

upload_stage_failures_total = Counter(
    "wardrobe_upload_stage_failures_total",
    "Fatal upload failures grouped by pipeline stage.",
    ["stage"],
)

analysis_degraded_total = Counter(
    "wardrobe_analysis_degraded_total",
    "Items saved without AI-derived attributes after an analysis failure.",
)

storage_cleanup_failures_total = Counter(
    "wardrobe_storage_cleanup_failures_total",
    "Storage objects that could not be removed after an item was deleted.",
)
