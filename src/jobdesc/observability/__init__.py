"""Logging and metrics for the extraction pipeline."""

from __future__ import annotations

from .logging import configure_logging
from .metrics import METRICS, export_prometheus, record_extraction, record_rejection, record_tier, set_enabled

__all__ = [
    "configure_logging",
    "METRICS",
    "export_prometheus",
    "record_extraction",
    "record_rejection",
    "record_tier",
    "set_enabled",
]
