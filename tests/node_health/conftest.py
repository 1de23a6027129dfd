"""
Shared pytest fixtures for node_health tests.

Import these fixtures automatically via pytest discovery.
"""

from __future__ import annotations

import pytest

from tests.node_health.helpers import FakeConsensusNode, FakeExecutionNode


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def el_node() -> FakeExecutionNode:
    """A synced execution node whose head is 10 seconds old."""
    return FakeExecutionNode()


@pytest.fixture
def cl_node() -> FakeConsensusNode:
    """A synced consensus node whose head is 10 seconds old."""
    return FakeConsensusNode()
