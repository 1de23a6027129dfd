"""
Shared adapter plumbing.

Both adapters answer the same question ("what does this node say about its
sync status right now?") over unrelated protocols. They share the sample type,
the adapter protocol, and the translation of HTTP failures into the verifier's
error taxonomy. Nothing here retries: retry policy belongs to the controller.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Final, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from node_health.errors import ProtocolError, TransientNetworkError
from node_health.targets import Layer, Target

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT: Final[float] = 5.0
"""Per-request HTTP timeout in seconds."""

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class RawSample:
    """
    One snapshot of what a node reports about itself.

    For the execution layer, numbers are block numbers. For the consensus
    layer, they are slots. Only the latest sample per target is ever kept.
    """

    layer: Layer
    """Layer of the node that produced the sample."""

    is_syncing: bool
    """The node's own syncing flag."""

    head_number: int | None = None
    """Current head block number or head slot."""

    highest_number: int | None = None
    """Highest known block or slot of the network, when syncing."""

    head_timestamp: int | None = None
    """
    Node-reported Unix time (seconds) of the head.

    Only fetched when the node claims to be synced.
    """

    optimistic: bool | None = None
    """CL only: head is not yet verified by the execution layer."""

    el_offline: bool | None = None
    """CL only: the consensus node has lost its execution layer."""

    def describe(self) -> str:
        """Short human-readable progress summary."""
        unit = "block" if self.layer is Layer.EL else "slot"
        if self.head_number is None:
            return "no progress figures"
        if self.highest_number is not None and self.highest_number != self.head_number:
            text = f"{unit} {self.head_number}/{self.highest_number}"
        else:
            text = f"{unit} {self.head_number}"
        if self.optimistic:
            text += " (optimistic)"
        if self.el_offline:
            text += " (execution layer offline)"
        return text


class SampleAdapter(Protocol):
    """The capability every protocol variant provides."""

    layer: Layer

    async def sample(self, target: Target) -> RawSample:
        """
        Poll the node once.

        Raises:
            TransientNetworkError: The node could not be reached.
            ProtocolError: The node answered with something unusable.
        """
        ...


@asynccontextmanager
async def open_client(
    target: Target,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Open a short-lived HTTP client for a single poll.

    Network-level failures raised inside the block are translated into
    TransientNetworkError. A body that arrives but cannot be decoded is a
    ProtocolError: the node answered.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            yield client
    except httpx.DecodingError as exc:
        raise ProtocolError(f"{target}: undecodable response body: {exc}") from exc
    except httpx.TimeoutException as exc:
        raise TransientNetworkError(f"{target}: request timed out") from exc
    except httpx.RequestError as exc:
        raise TransientNetworkError(f"{target}: {type(exc).__name__}: {exc}") from exc


def read_json(response: httpx.Response, target: Target, what: str) -> Any:
    """Decode a JSON body, rejecting anything that is not JSON."""
    try:
        return response.json()
    except ValueError as exc:
        snippet = response.text[:80]
        raise ProtocolError(f"{target}: {what} returned a non-JSON body: {snippet!r}") from exc


def decode(model: type[ModelT], payload: Any, target: Target, what: str) -> ModelT:
    """Validate a decoded payload against a response schema."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ProtocolError(f"{target}: malformed {what} response ({problems})") from exc
