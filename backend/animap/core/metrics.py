"""Prometheus metrics for identity resolution."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

resolutions_total = Counter(
    "animap_resolutions_total",
    "Identity resolutions by catalog and selection method",
    ["catalog", "method"],
)

season_resolutions_total = Counter(
    "animap_season_resolutions_total",
    "Season resolutions by selection method",
    ["catalog", "method"],
)

catalog_query_failures_total = Counter(
    "animap_catalog_query_failures_total",
    "Resolutions that ended with every catalog query failing",
    ["catalog"],
)

resolution_cache_events_total = Counter(
    "animap_resolution_cache_events_total",
    "Resolution cache lookups",
    ["event"],  # hit, miss
)

resolution_duration_seconds = Histogram(
    "animap_resolution_duration_seconds",
    "Time spent resolving one source identity against one catalog",
    ["catalog"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
