"""
Defines Prometheus metrics for the extraction pipeline.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import generate_latest

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test reloads, multiple workers in one process)
# must not raise "Duplicated timeseries" errors.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, use the collector that won.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "tier_attempts": Counter(
            "jobdesc_tier_attempts_total",
            "Fetch tier attempts by outcome",
            ["tier", "outcome"],
        ),
        "tier_duration_seconds": Histogram(
            "jobdesc_tier_duration_seconds",
            "Wall time spent in a fetch tier",
            ["tier"],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 45.0, 60.0),
        ),
        "extractions": Counter(
            "jobdesc_extractions_total",
            "Pipeline extractions by final outcome",
            ["outcome"],
        ),
        "validation_rejections": Counter(
            "jobdesc_validation_rejections_total",
            "Candidate texts rejected by the quality validator",
            ["reason"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()

_enabled = True


def set_enabled(enabled: bool) -> None:
    """Turn metric recording on or off for this process."""
    global _enabled
    _enabled = enabled


def record_tier(tier: str, outcome: str, duration: float) -> None:
    if not _enabled:
        return
    METRICS["tier_attempts"].labels(tier=tier, outcome=outcome).inc()
    METRICS["tier_duration_seconds"].labels(tier=tier).observe(duration)


def record_extraction(outcome: str) -> None:
    if not _enabled:
        return
    METRICS["extractions"].labels(outcome=outcome).inc()


def record_rejection(reason: str) -> None:
    if not _enabled:
        return
    METRICS["validation_rejections"].labels(reason=reason).inc()


def export_prometheus() -> str:
    """Export metrics in Prometheus text format."""
    return generate_latest().decode("utf-8")
