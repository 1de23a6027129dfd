"""
Report rendering and exit codes.

The exit code is how a deployment script learns whether the infrastructure
is healthy, so the mapping is fixed:

- 0: every required node is healthy
- 1: at least one required node is not
- 2: the verifier was invoked incorrectly; no node was checked
"""

from __future__ import annotations

from typing import Final

from node_health import metrics
from node_health.sync import head_age

from .aggregator import TargetResult, Verdict

EXIT_PASS: Final = 0
EXIT_FAIL: Final = 1
EXIT_USAGE: Final = 2

# ANSI color codes
GREEN = "\x1b[38;5;40m"
YELLOW = "\x1b[38;5;220m"
RED = "\x1b[38;5;196m"
RESET = "\x1b[0m"


def exit_code(verdict: Verdict) -> int:
    """Map a verdict to the process exit code."""
    return EXIT_PASS if verdict.passed else EXIT_FAIL


def render_target(
    result: TargetResult,
    accept_pending: bool,
    now: float | None = None,
    color: bool = False,
) -> str:
    """One status line for a target."""
    state = result.state.name if result.state is not None else "NO RESPONSE"
    if result.timed_out:
        state = f"TIMED OUT ({state})"
    state = f"{state:<24}"
    if color:
        tint = GREEN if result.is_favorable(accept_pending) else YELLOW
        state = f"{tint}{state}{RESET}"

    parts = [f"{result.target.layer.value:<3}", f"{result.target.url:<30}", state]
    if result.sample is not None:
        detail = result.sample.describe()
        if now is not None and result.sample.head_timestamp is not None:
            detail += f", head age {head_age(result.sample.head_timestamp, now):.0f}s"
        parts.append(detail)
    parts.append(f"[{result.attempts} poll(s)]")
    return " ".join(parts)


def render(verdict: Verdict, color: bool = False, now: float | None = None) -> list[str]:
    """
    Render the full report: one line per target, then the verdict line.

    Args:
        verdict: The run's verdict.
        color: Whether to emit ANSI colors.
        now: Current Unix time, used to show head ages.
    """
    lines = [
        render_target(result, verdict.accept_pending, now, color) for result in verdict.results
    ]

    if verdict.passed:
        mode = "synced or syncing" if verdict.accept_pending else "synced"
        text = f"PASS: all required nodes are {mode} and healthy"
        tint = GREEN
    else:
        text = f"FAIL: {verdict.reason}"
        tint = RED
    lines.append(f"{tint}{text}{RESET}" if color else text)
    return lines


def record_verdict(verdict: Verdict) -> None:
    """Publish the verdict to the metrics registry."""
    metrics.verdict.set(1 if verdict.passed else 0)
