"""
avrocheck.tier0_core.metrics
─────────────────────────────
Counters and histograms with standard naming and labels.

Minimal stack: prometheus-client
Configure via: APP_NAME, APP_ENV (label values)
"""
from __future__ import annotations

import os
from typing import Callable

from prometheus_client import Counter, Histogram

# Standard labels applied to every metric
_DEFAULT_LABELS = ["service", "env"]
_SERVICE = os.getenv("APP_NAME", "avrocheck")
_ENV = os.getenv("APP_ENV", "development")
_DEFAULT_LABEL_VALUES = {"service": _SERVICE, "env": _ENV}


def counter(name: str, description: str, labels: list[str] | None = None) -> Callable:
    """
    Create a counter with standard labels. Call once per metric name, at
    module import time.

    Usage:
        cache_hits = counter("avrocheck_schema_cache_hits_total", "Cache hits")
        cache_hits().inc()
    """
    all_labels = _DEFAULT_LABELS + (labels or [])
    c = Counter(name, description, all_labels)

    def _counter(**extra_labels: str) -> Counter:
        return c.labels(**_DEFAULT_LABEL_VALUES, **extra_labels)

    return _counter


def histogram(
    name: str,
    description: str,
    labels: list[str] | None = None,
    buckets: tuple = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
) -> Callable:
    """
    Create a histogram with standard labels.

    Usage:
        fetch_seconds = histogram("avrocheck_registry_fetch_seconds", "Fetch latency", ["outcome"])
        fetch_seconds(outcome="ok").observe(0.042)
    """
    all_labels = _DEFAULT_LABELS + (labels or [])
    h = Histogram(name, description, all_labels, buckets=buckets)

    def _histogram(**extra_labels: str) -> Histogram:
        return h.labels(**_DEFAULT_LABEL_VALUES, **extra_labels)

    return _histogram


# ── avrocheck metrics ─────────────────────────────────────────────────────────

schema_cache_hits = counter(
    "avrocheck_schema_cache_hits_total", "Schema lookups served from cache"
)
schema_cache_misses = counter(
    "avrocheck_schema_cache_misses_total", "Schema lookups that started a fetch"
)
schema_cache_fetches = counter(
    "avrocheck_schema_cache_fetches_total", "Registry fetch attempts made by the cache"
)
schema_cache_fetch_failures = counter(
    "avrocheck_schema_cache_fetch_failures_total",
    "Shared fetch+compile attempts that failed",
    ["error"],
)
registry_fetch_seconds = histogram(
    "avrocheck_registry_fetch_seconds",
    "Registry GET latency",
    ["outcome"],
)


__all__ = [
    "counter",
    "histogram",
    "schema_cache_hits",
    "schema_cache_misses",
    "schema_cache_fetches",
    "schema_cache_fetch_failures",
    "registry_fetch_seconds",
]
