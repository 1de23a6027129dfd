"""
Consensus layer adapter.

Speaks the standard Beacon node HTTP API. The health endpoint answers with
a status code only:

- 200: node is ready
- 206: node is syncing
- 404 or 405: the URL does not serve the Beacon API at all
- anything else: node is up but not serving (e.g. 503 while initialising)

The syncing endpoint carries the head slot and the node's own syncing flag.
When the node claims to be synced, the head slot is converted to wall-clock
time using the chain's genesis time and slot duration.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Final

import httpx

from node_health.errors import ProtocolError
from node_health.targets import Layer, Target

from .base import DEFAULT_REQUEST_TIMEOUT, RawSample, decode, open_client, read_json
from .models import BeaconGenesisResponse, BeaconSpecResponse, BeaconSyncingResponse

logger = logging.getLogger(__name__)

HEALTH_ENDPOINT: Final = "/eth/v1/node/health"
SYNCING_ENDPOINT: Final = "/eth/v1/node/syncing"
GENESIS_ENDPOINT: Final = "/eth/v1/beacon/genesis"
SPEC_ENDPOINT: Final = "/eth/v1/config/spec"

HEALTH_READY: Final = 200
HEALTH_SYNCING: Final = 206
HEALTH_MISSING: Final = frozenset({404, 405})


class ConsensusAdapter:
    """Produces samples from a consensus layer node."""

    layer = Layer.CL

    def __init__(
        self,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.request_timeout = request_timeout
        self._transport = transport

    async def sample(self, target: Target) -> RawSample:
        """Poll the consensus node once."""
        async with open_client(target, self.request_timeout, self._transport) as client:
            health = await client.get(f"{target.url}{HEALTH_ENDPOINT}")
            if health.status_code in HEALTH_MISSING:
                raise ProtocolError(
                    f"{target}: {HEALTH_ENDPOINT} returned HTTP {health.status_code}, "
                    "not a Beacon API endpoint"
                )
            ready = health.status_code == HEALTH_READY
            if not ready:
                logger.debug("%s: health endpoint answered %d", target, health.status_code)

            try:
                body = await self._get_json(client, target, SYNCING_ENDPOINT)
                syncing = decode(BeaconSyncingResponse, body, target, "syncing").data
            except ProtocolError:
                # The node answered the health probe, so it is up. If health
                # already said "not ready", that is all we need to know.
                if ready:
                    raise
                return RawSample(layer=Layer.CL, is_syncing=True)

            sample = RawSample(
                layer=Layer.CL,
                is_syncing=syncing.is_syncing or not ready,
                head_number=syncing.head_slot,
                highest_number=syncing.head_slot + syncing.sync_distance,
                optimistic=syncing.is_optimistic,
                el_offline=syncing.el_offline,
            )
            if sample.is_syncing:
                return sample

            genesis = decode(
                BeaconGenesisResponse,
                await self._get_json(client, target, GENESIS_ENDPOINT),
                target,
                "genesis",
            ).data
            spec = decode(
                BeaconSpecResponse,
                await self._get_json(client, target, SPEC_ENDPOINT),
                target,
                "spec",
            ).data

            head_time = genesis.genesis_time + syncing.head_slot * spec.seconds_per_slot
            return replace(sample, head_timestamp=head_time)

    async def _get_json(self, client: httpx.AsyncClient, target: Target, path: str) -> Any:
        response = await client.get(f"{target.url}{path}")
        if response.is_error:
            raise ProtocolError(f"{target}: {path} returned HTTP {response.status_code}")
        return read_json(response, target, path)
