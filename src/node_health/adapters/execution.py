"""
Execution layer adapter.

Speaks Ethereum JSON-RPC 2.0 over HTTP POST. A poll is two or three calls:

1. eth_syncing: false when the node considers itself synced, otherwise an
   object with hex progress figures.
2. eth_blockNumber: the current head. With a progress object the head comes
   from currentBlock instead, and this call only confirms that the node
   answers head queries; a malformed answer still fails the poll.
3. eth_getBlockByNumber (only when not syncing): the head block's timestamp,
   which the freshness check needs to spot a zombie node.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx

from node_health.errors import ProtocolError
from node_health.targets import Layer, Target

from .base import DEFAULT_REQUEST_TIMEOUT, RawSample, decode, open_client, read_json
from .models import EthBlock, EthSyncingProgress, JsonRpcResponse, parse_quantity

logger = logging.getLogger(__name__)


class ExecutionAdapter:
    """Produces samples from an execution layer node."""

    layer = Layer.EL

    def __init__(
        self,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            request_timeout: Timeout for each HTTP request, in seconds.
            transport: Optional transport override, used by tests to fake a node.
        """
        self.request_timeout = request_timeout
        self._transport = transport
        self._ids = itertools.count(1)

    async def sample(self, target: Target) -> RawSample:
        """Poll the execution node once."""
        async with open_client(target, self.request_timeout, self._transport) as client:
            syncing = _parse_syncing(await self._call(client, target, "eth_syncing"), target)
            head = _quantity(await self._call(client, target, "eth_blockNumber"), target, "head")

            if isinstance(syncing, EthSyncingProgress):
                return RawSample(
                    layer=Layer.EL,
                    is_syncing=True,
                    head_number=syncing.current_block,
                    highest_number=syncing.highest_block,
                )
            if syncing:
                # Bare `true`: syncing, but the client publishes no figures.
                return RawSample(layer=Layer.EL, is_syncing=True, head_number=head)

            # Fetch the very block we were told is the head so the timestamp
            # and the number describe the same block.
            result = await self._call(client, target, "eth_getBlockByNumber", [hex(head), False])
            if result is None:
                raise ProtocolError(f"{target}: head block {head} not found")
            block = decode(EthBlock, result, target, "eth_getBlockByNumber")

            return RawSample(
                layer=Layer.EL,
                is_syncing=False,
                head_number=block.number if block.number is not None else head,
                head_timestamp=block.timestamp,
            )

    async def _call(
        self,
        client: httpx.AsyncClient,
        target: Target,
        method: str,
        params: list[Any] | None = None,
    ) -> Any:
        """Issue one JSON-RPC call and return its result member."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug("%s: -> %s %s", target, method, payload["params"])

        response = await client.post(target.url, json=payload)
        if response.is_error:
            raise ProtocolError(f"{target}: {method} returned HTTP {response.status_code}")

        envelope = decode(JsonRpcResponse, read_json(response, target, method), target, method)
        if envelope.error is not None:
            raise ProtocolError(
                f"{target}: {method} failed with JSON-RPC error "
                f"{envelope.error.code}: {envelope.error.message}"
            )
        if not envelope.has_result:
            raise ProtocolError(f"{target}: {method} response has no result")

        logger.debug("%s: <- %s %r", target, method, envelope.result)
        return envelope.result


def _parse_syncing(result: Any, target: Target) -> EthSyncingProgress | bool:
    """
    Interpret an eth_syncing result.

    Only the literal JSON booleans and the progress object are accepted.
    Anything else is a protocol error, never "not syncing".
    """
    if result is False or result is True:
        return result
    if isinstance(result, dict):
        return decode(EthSyncingProgress, result, target, "eth_syncing")
    raise ProtocolError(f"{target}: unexpected eth_syncing result {result!r}")


def _quantity(value: Any, target: Target, what: str) -> int:
    try:
        return parse_quantity(value)
    except ValueError as exc:
        raise ProtocolError(f"{target}: malformed {what}: {exc}") from exc
