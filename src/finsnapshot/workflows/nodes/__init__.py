"""Convenience re-exports for workflow nodes."""
from __future__ import annotations

from . import anomalies, chart_builder, data_load, quant_metrics, reconcile, writing

__all__ = [
    "anomalies",
    "chart_builder",
    "data_load",
    "quant_metrics",
    "reconcile",
    "writing",
]
