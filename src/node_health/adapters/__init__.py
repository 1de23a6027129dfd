"""
Protocol adapters.

Each adapter turns one poll of a node's native API into a RawSample. The
variant is chosen by the target's layer, so callers never branch on protocol.
"""

from __future__ import annotations

import httpx

from node_health.targets import Layer

from .base import DEFAULT_REQUEST_TIMEOUT, RawSample, SampleAdapter
from .consensus import ConsensusAdapter
from .execution import ExecutionAdapter

_ADAPTERS: dict[Layer, type[ExecutionAdapter] | type[ConsensusAdapter]] = {
    Layer.EL: ExecutionAdapter,
    Layer.CL: ConsensusAdapter,
}


def adapter_for(
    layer: Layer,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SampleAdapter:
    """Build the adapter that speaks the given layer's protocol."""
    return _ADAPTERS[layer](request_timeout=request_timeout, transport=transport)


__all__ = [
    "ConsensusAdapter",
    "DEFAULT_REQUEST_TIMEOUT",
    "ExecutionAdapter",
    "RawSample",
    "SampleAdapter",
    "adapter_for",
]
