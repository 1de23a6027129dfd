"""
Fake execution and consensus nodes.

Each fake answers its protocol's requests from a handful of mutable fields,
so a test can put a node into any state (syncing, synced, stalled, broken)
and even change it between polls. The fakes plug into httpx through
``mock_transport`` and into aiohttp servers in the end-to-end tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

from node_health.adapters import RawSample
from node_health.adapters.consensus import (
    GENESIS_ENDPOINT,
    HEALTH_ENDPOINT,
    SPEC_ENDPOINT,
    SYNCING_ENDPOINT,
)
from node_health.poll import VerifierConfig
from node_health.targets import Layer

EL_URL = "http://el.test:8545"
CL_URL = "http://cl.test:3500"

NOW = 1_700_000_000.0
"""Fixed wall-clock time used by tests that inject a clock."""


@dataclass
class FakeExecutionNode:
    """Minimal JSON-RPC execution node."""

    syncing: Any = False
    """Value returned by eth_syncing."""

    head: int = 0x1000
    """Head block number."""

    head_timestamp: int = int(NOW) - 10
    """Timestamp of the head block."""

    overrides: dict[str, dict[str, Any]] = field(default_factory=dict)
    """Per-method envelope members replacing the normal answer."""

    status_code: int = 200
    """HTTP status of every response."""

    raw_body: str | None = None
    """If set, returned verbatim instead of a JSON-RPC envelope."""

    calls: list[str] = field(default_factory=list)
    """Methods called, in order."""

    def rpc(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Answer one JSON-RPC request."""
        method = payload["method"]
        self.calls.append(method)
        envelope: dict[str, Any] = {"jsonrpc": "2.0", "id": payload["id"]}

        if method in self.overrides:
            return envelope | self.overrides[method]
        if method == "eth_syncing":
            return envelope | {"result": self.syncing}
        if method == "eth_blockNumber":
            return envelope | {"result": hex(self.head)}
        if method == "eth_getBlockByNumber":
            block = {
                "number": hex(self.head),
                "timestamp": hex(self.head_timestamp),
                "hash": "0x" + "ab" * 32,
            }
            return envelope | {"result": block}
        return envelope | {"error": {"code": -32601, "message": "method not found"}}

    def handle(self, request: httpx.Request) -> httpx.Response:
        """httpx handler."""
        if self.raw_body is not None:
            return httpx.Response(self.status_code, text=self.raw_body)
        return httpx.Response(self.status_code, json=self.rpc(json.loads(request.content)))


@dataclass
class FakeConsensusNode:
    """Minimal Beacon API consensus node."""

    health_status: int = 200
    """Status code of the health endpoint."""

    is_syncing: Any = False
    """Value of data.is_syncing on the syncing endpoint."""

    head_slot: int = 1000
    sync_distance: int = 0
    seconds_per_slot: int = 12

    genesis_time: int | None = None
    """Genesis time; defaults to one that puts the head 10 seconds before NOW."""

    overrides: dict[str, tuple[int, Any]] = field(default_factory=dict)
    """Per-path (status, body) replacing the normal answer. A str body is sent raw."""

    calls: list[str] = field(default_factory=list)
    """Paths requested, in order."""

    def __post_init__(self) -> None:
        if self.genesis_time is None:
            self.set_head_age(10)

    def set_head_age(self, age: int, now: float = NOW) -> None:
        """Move genesis so the current head slot is `age` seconds old at `now`."""
        self.genesis_time = int(now) - age - self.head_slot * self.seconds_per_slot

    def route(self, path: str) -> tuple[int, Any]:
        """Answer one request by path."""
        self.calls.append(path)
        if path in self.overrides:
            return self.overrides[path]
        if path == HEALTH_ENDPOINT:
            return self.health_status, None
        if path == SYNCING_ENDPOINT:
            data = {
                "head_slot": str(self.head_slot),
                "sync_distance": str(self.sync_distance),
                "is_syncing": self.is_syncing,
                "is_optimistic": False,
                "el_offline": False,
            }
            return 200, {"data": data}
        if path == GENESIS_ENDPOINT:
            data = {
                "genesis_time": str(self.genesis_time),
                "genesis_validators_root": "0x" + "00" * 32,
                "genesis_fork_version": "0x00000000",
            }
            return 200, {"data": data}
        if path == SPEC_ENDPOINT:
            return 200, {"data": {"SECONDS_PER_SLOT": str(self.seconds_per_slot)}}
        return 404, {"code": 404, "message": "not found"}

    def handle(self, request: httpx.Request) -> httpx.Response:
        """httpx handler."""
        status, body = self.route(request.url.path)
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


def mock_transport(
    el: FakeExecutionNode | None = None,
    cl: FakeConsensusNode | None = None,
) -> httpx.MockTransport:
    """
    Route requests to the fake nodes by host.

    A missing node behaves like a closed port: the connection is refused.
    """
    nodes = {
        httpx.URL(EL_URL).host: el,
        httpx.URL(CL_URL).host: cl,
    }

    def handler(request: httpx.Request) -> httpx.Response:
        node = nodes.get(request.url.host)
        if node is None:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        return node.handle(request)

    return httpx.MockTransport(handler)


def make_config(**overrides: Any) -> VerifierConfig:
    """Fast-polling config pointed at the fake nodes."""
    values: dict[str, Any] = {
        "el_rpc_endpoint": EL_URL,
        "cl_rpc_endpoint": CL_URL,
        "interval": 0.01,
        "timeout": 0.3,
        "request_timeout": 1.0,
    }
    values.update(overrides)
    return VerifierConfig(**values)


def make_sample(
    is_syncing: bool = False,
    head_timestamp: int | None = int(NOW) - 10,
    layer: Layer = Layer.EL,
    head_number: int | None = 100,
) -> RawSample:
    """Build a sample without going through an adapter."""
    return RawSample(
        layer=layer,
        is_syncing=is_syncing,
        head_number=head_number,
        head_timestamp=head_timestamp,
    )
