"""Test helpers for node_health unit tests."""

from .fakes import (
    CL_URL,
    EL_URL,
    NOW,
    FakeConsensusNode,
    FakeExecutionNode,
    make_config,
    make_sample,
    mock_transport,
)

__all__ = [
    "CL_URL",
    "EL_URL",
    "NOW",
    "FakeConsensusNode",
    "FakeExecutionNode",
    "make_config",
    "make_sample",
    "mock_transport",
]
