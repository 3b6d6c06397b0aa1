"""Metrics for the core."""

from shared.metrics.metrics import CoreMetrics

__all__ = ["CoreMetrics"]
