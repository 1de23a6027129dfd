"""
Metric registry using prometheus_client.

Records what a single verification run observed. No endpoint is served: the
registry can be dumped once at the end of a run to a file picked up by a
node-exporter textfile collector.
"""

from __future__ import annotations

from pathlib import Path

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    write_to_textfile,
)

# Dedicated registry, so default Python process metrics stay out of the output.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Polling
# -----------------------------------------------------------------------------

polls_total = Counter(
    "node_health_polls_total",
    "Polls performed, by resulting state",
    ["layer", "state"],
    registry=REGISTRY,
)

head_age_seconds = Gauge(
    "node_health_head_age_seconds",
    "Age of the node-reported head at the latest poll",
    ["layer"],
    registry=REGISTRY,
)

target_state = Gauge(
    "node_health_target_state",
    "Latest node state (NodeState value)",
    ["layer"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Outcome
# -----------------------------------------------------------------------------

verdict = Gauge(
    "node_health_verdict",
    "1 if the run passed, 0 if it failed",
    registry=REGISTRY,
)


def write_metrics(path: Path) -> None:
    """Atomically write the registry to a textfile."""
    write_to_textfile(str(path), REGISTRY)
