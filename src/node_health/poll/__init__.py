"""Polling: run configuration and the per-target poll/retry controller."""

from .config import (
    DEFAULT_CL_ENDPOINT,
    DEFAULT_DEADLINE,
    DEFAULT_EL_ENDPOINT,
    DEFAULT_POLL_INTERVAL,
    ConfigFile,
    VerifierConfig,
)
from .controller import PollController, PollPhase, TargetStatus

__all__ = [
    "ConfigFile",
    "DEFAULT_CL_ENDPOINT",
    "DEFAULT_DEADLINE",
    "DEFAULT_EL_ENDPOINT",
    "DEFAULT_POLL_INTERVAL",
    "PollController",
    "PollPhase",
    "TargetStatus",
    "VerifierConfig",
]
