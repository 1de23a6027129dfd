"""
Metrics module for observability.

Provides counters and gauges describing one verification run.
Written once per run in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    head_age_seconds,
    polls_total,
    target_state,
    verdict,
    write_metrics,
)

__all__ = [
    "REGISTRY",
    "head_age_seconds",
    "polls_total",
    "target_state",
    "verdict",
    "write_metrics",
]
