"""
Response schemas for the two node APIs.

The models are strict: a field that does not have exactly the expected JSON
type fails validation. In particular a syncing flag sent as the string "false"
is rejected rather than coerced, so a misbehaving node can never be read as
synced by accident.
"""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

_HEX_QUANTITY = re.compile(r"^0x[0-9a-fA-F]+$")
_DECIMAL = re.compile(r"^[0-9]+$")


def parse_quantity(value: Any) -> int:
    """
    Parse a JSON-RPC hex quantity such as "0x1b4".

    Raises:
        ValueError: If the value is not a hex-encoded string.
    """
    if not isinstance(value, str) or not _HEX_QUANTITY.match(value):
        raise ValueError(f"expected a hex quantity, got {value!r}")
    return int(value, 16)


def parse_decimal(value: Any) -> int:
    """
    Parse a Beacon API unsigned integer, which is sent as a decimal string.

    Raises:
        ValueError: If the value is not a decimal string.
    """
    if not isinstance(value, str) or not _DECIMAL.match(value):
        raise ValueError(f"expected a decimal string, got {value!r}")
    return int(value)


HexQuantity = Annotated[int, BeforeValidator(parse_quantity)]
"""Integer transported as a 0x-prefixed hex string."""

DecimalString = Annotated[int, BeforeValidator(parse_decimal)]
"""Integer transported as a decimal string."""


class ResponseModel(BaseModel):
    """Strict, immutable base for node responses. Unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True, strict=True)


class CamelResponseModel(ResponseModel):
    """Response model whose JSON field names are camelCase."""

    model_config = ResponseModel.model_config | {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


# -----------------------------------------------------------------------------
# Execution layer (JSON-RPC)
# -----------------------------------------------------------------------------


class JsonRpcError(ResponseModel):
    """JSON-RPC error object."""

    code: int
    message: str


class JsonRpcResponse(ResponseModel):
    """JSON-RPC 2.0 response envelope."""

    jsonrpc: str
    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def has_result(self) -> bool:
        """Whether the node sent a result member, even a null one."""
        return "result" in self.model_fields_set


class EthSyncingProgress(CamelResponseModel):
    """The object form of an eth_syncing result."""

    starting_block: HexQuantity | None = None
    current_block: HexQuantity
    highest_block: HexQuantity


class EthBlock(CamelResponseModel):
    """The fields of eth_getBlockByNumber the verifier needs."""

    number: HexQuantity | None = None
    timestamp: HexQuantity


# -----------------------------------------------------------------------------
# Consensus layer (Beacon node API)
# -----------------------------------------------------------------------------


class BeaconSyncingData(ResponseModel):
    """Body of /eth/v1/node/syncing."""

    head_slot: DecimalString
    sync_distance: DecimalString
    is_syncing: bool
    is_optimistic: bool | None = None
    el_offline: bool | None = None


class BeaconSyncingResponse(ResponseModel):
    """Envelope of /eth/v1/node/syncing."""

    data: BeaconSyncingData


class BeaconGenesisData(ResponseModel):
    """Body of /eth/v1/beacon/genesis."""

    genesis_time: DecimalString


class BeaconGenesisResponse(ResponseModel):
    """Envelope of /eth/v1/beacon/genesis."""

    data: BeaconGenesisData


class BeaconSpecData(ResponseModel):
    """The subset of /eth/v1/config/spec the verifier needs."""

    seconds_per_slot: DecimalString = Field(alias="SECONDS_PER_SLOT")


class BeaconSpecResponse(ResponseModel):
    """Envelope of /eth/v1/config/spec."""

    data: BeaconSpecData
