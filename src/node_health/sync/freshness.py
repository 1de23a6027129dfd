"""
Freshness detector.

A node's syncing flag only says what the node believes. A node whose peers
are all gone keeps answering RPC and keeps saying "synced" while its head
falls further behind real time. The age of the head block, as reported by
the node itself, is the tell.

The age is measured from the node-reported head timestamp, not from the
moment the sample was taken, so slow polls do not make a node look stale.
"""

from __future__ import annotations

from typing import Final

from node_health.adapters import RawSample

from .states import NodeState

DEFAULT_STALENESS_THRESHOLD: Final[float] = 60.0
"""Maximum head age in seconds before a synced node is declared stale."""


def head_age(head_timestamp: int, now: float) -> float:
    """
    Seconds between the head's timestamp and now.

    Negative when the node's clock runs ahead of ours.
    """
    return now - head_timestamp


def check_freshness(
    state: NodeState,
    sample: RawSample,
    now: float,
    threshold: float = DEFAULT_STALENESS_THRESHOLD,
) -> NodeState:
    """
    Confirm or downgrade a candidate SYNCED state.

    Any other state passes through untouched.

    Args:
        state: State proposed by the evaluator.
        sample: The sample the state was derived from.
        now: Current Unix time in seconds.
        threshold: Maximum accepted head age in seconds.

    Returns:
        SYNCED if the head is fresh, STALE if it is too old, ERROR if the
        sample has no head timestamp to judge by.
    """
    if state is not NodeState.SYNCED:
        return state

    # Without a timestamp the claim cannot be checked. Refuse it.
    if sample.head_timestamp is None:
        return NodeState.ERROR

    if head_age(sample.head_timestamp, now) > threshold:
        return NodeState.STALE
    return NodeState.SYNCED
