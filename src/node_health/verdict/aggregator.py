"""
Verdict aggregator.

Combines the final state of every required target into one pass/fail result.
The boolean does not depend on target order; the reported failure does, and
always names the first failing target in layer order (EL before CL) so the
same situation produces the same diagnostics on every run.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from node_health.adapters import RawSample
from node_health.poll import PollPhase, TargetStatus
from node_health.sync import NodeState
from node_health.targets import Target


class FailureKind(Enum):
    """Why a required target did not pass."""

    STALENESS_VIOLATION = "stale head"
    """The node claims to be synced but its head stopped advancing."""

    DEADLINE_EXCEEDED = "deadline exceeded"
    """The node never reached a favorable state in time."""


@dataclass(frozen=True, slots=True)
class TargetResult:
    """Frozen end-of-run view of one target."""

    target: Target
    state: NodeState | None
    timed_out: bool
    attempts: int
    sample: RawSample | None = None

    @classmethod
    def from_status(cls, status: TargetStatus) -> TargetResult:
        """Snapshot a controller record once its loop has stopped."""
        return cls(
            target=status.target,
            state=status.state,
            timed_out=status.phase is PollPhase.TIMED_OUT,
            attempts=status.attempts,
            sample=status.sample,
        )

    def is_favorable(self, accept_pending: bool) -> bool:
        """Whether this target's final state counts as healthy."""
        return self.state is not None and self.state.is_favorable(accept_pending)


@dataclass(frozen=True, slots=True)
class FailureReason:
    """The first failing required target and what was wrong with it."""

    target: Target
    state: NodeState | None
    kind: FailureKind

    def __str__(self) -> str:
        state = self.state.name if self.state is not None else "NO RESPONSE"
        if self.kind is FailureKind.STALENESS_VIOLATION:
            return f"{self.target} is {state}: reports synced but its head is too old"
        return f"{self.target} timed out while {state}"


@dataclass(frozen=True, slots=True)
class Verdict:
    """Outcome of a verification run."""

    passed: bool
    """True iff every required target ended in a favorable state."""

    results: tuple[TargetResult, ...]
    """Final view of every polled target, EL before CL."""

    reason: FailureReason | None
    """First failure in layer order, None when the run passed."""

    accept_pending: bool
    """Whether SYNCING counted as favorable for this run."""


def aggregate(statuses: Iterable[TargetStatus], accept_pending: bool) -> Verdict:
    """
    Reduce per-target results to a single verdict.

    Args:
        statuses: Final controller records; read only after polling stopped.
        accept_pending: Whether SYNCING counts as favorable.

    Returns:
        Pass iff every required target is favorable, otherwise Fail naming
        the first unfavorable required target in layer order.

    Raises:
        ValueError: If there is nothing to aggregate.
    """
    results = tuple(
        sorted(
            (TargetResult.from_status(status) for status in statuses),
            key=lambda result: result.target.layer.order,
        )
    )
    if not results:
        raise ValueError("cannot aggregate a run without targets")

    for result in results:
        if not result.target.required or result.is_favorable(accept_pending):
            continue
        kind = (
            FailureKind.STALENESS_VIOLATION
            if result.state is NodeState.STALE
            else FailureKind.DEADLINE_EXCEEDED
        )
        return Verdict(
            passed=False,
            results=results,
            reason=FailureReason(target=result.target, state=result.state, kind=kind),
            accept_pending=accept_pending,
        )

    return Verdict(passed=True, results=results, reason=None, accept_pending=accept_pending)
