"""Sync state evaluation: from raw samples to normalized node states."""

from .evaluator import PollOutcome, assess, evaluate
from .freshness import DEFAULT_STALENESS_THRESHOLD, check_freshness, head_age
from .states import NodeState

__all__ = [
    "DEFAULT_STALENESS_THRESHOLD",
    "NodeState",
    "PollOutcome",
    "assess",
    "check_freshness",
    "evaluate",
    "head_age",
]
