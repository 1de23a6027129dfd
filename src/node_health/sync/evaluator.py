"""
Sync state evaluator.

Turns the outcome of one poll into a NodeState in two stages:

1. ``evaluate`` reads the poll outcome and the node's syncing flag.
2. ``check_freshness`` confirms or downgrades a "synced" claim.

Keeping the stages apart keeps "never synced" and "synced, then stalled"
distinguishable.
"""

from __future__ import annotations

from node_health.adapters import RawSample
from node_health.errors import AdapterError, TransientNetworkError

from .freshness import DEFAULT_STALENESS_THRESHOLD, check_freshness
from .states import NodeState

PollOutcome = RawSample | AdapterError
"""Either a sample or the error that prevented one."""


def evaluate(outcome: PollOutcome) -> NodeState:
    """
    First-stage classification of a poll outcome.

    SYNCED here is only a candidate; run the result through the freshness
    check before trusting it.
    """
    if isinstance(outcome, TransientNetworkError):
        return NodeState.UNREACHABLE
    if isinstance(outcome, AdapterError):
        return NodeState.ERROR

    # A flag of any other type must not fall through to "synced".
    if not isinstance(outcome.is_syncing, bool):
        return NodeState.ERROR
    if outcome.is_syncing:
        return NodeState.SYNCING
    return NodeState.SYNCED


def assess(
    outcome: PollOutcome,
    now: float,
    threshold: float = DEFAULT_STALENESS_THRESHOLD,
) -> NodeState:
    """Run both stages and return the final state for one poll."""
    state = evaluate(outcome)
    if isinstance(outcome, RawSample):
        state = check_freshness(state, outcome, now, threshold)
    return state
