"""Normalized per-target node states."""

from __future__ import annotations

from enum import Enum, auto


class NodeState(Enum):
    """
    What the verifier concluded about a node from its latest poll.

    Decision Tree
    -------------
    ::

        poll failed? ──yes──> UNREACHABLE (no answer) / ERROR (bad answer)
            │
            no
            │
        syncing? ──yes──> SYNCING
            │
            no
            │
        head fresh? ──yes──> SYNCED
            │
            no
            │
            └──> STALE

    SYNCED and STALE split the "not syncing" branch between them: a node that
    says it is synced is exactly one of the two.
    """

    UNREACHABLE = auto()
    """
    The node did not answer.

    Connection refused, DNS failure or timeout. Common while a freshly
    deployed node is still starting, so it is retried.
    """

    SYNCING = auto()
    """
    The node answered and reports that it is catching up.

    Healthy infrastructure, but not yet following the chain head.
    """

    SYNCED = auto()
    """
    The node reports synced and its head is recent.

    The only state that proves the node is following the network.
    """

    STALE = auto()
    """
    The node reports synced but its head is too old.

    A zombie: the API still answers while the node has stopped importing
    blocks, typically because its peer-to-peer layer died. Shallow checks
    would call it healthy.
    """

    ERROR = auto()
    """
    The node answered with a malformed or unexpected response.

    Often a sign of a wrong endpoint (e.g. an EL URL passed as the CL URL).
    """

    def is_favorable(self, accept_pending: bool) -> bool:
        """
        Check whether this state lets a target stop polling.

        Args:
            accept_pending: Whether an in-progress sync counts as success.

        Returns:
            True for SYNCED, and for SYNCING when pending acceptance is on.
        """
        if self is NodeState.SYNCED:
            return True
        return accept_pending and self is NodeState.SYNCING
