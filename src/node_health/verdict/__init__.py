"""Verdict aggregation and reporting."""

from .aggregator import FailureKind, FailureReason, TargetResult, Verdict, aggregate
from .report import EXIT_FAIL, EXIT_PASS, EXIT_USAGE, exit_code, record_verdict, render

__all__ = [
    "EXIT_FAIL",
    "EXIT_PASS",
    "EXIT_USAGE",
    "FailureKind",
    "FailureReason",
    "TargetResult",
    "Verdict",
    "aggregate",
    "exit_code",
    "record_verdict",
    "render",
]
