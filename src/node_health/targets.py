"""
Verification targets.

A target is one node endpoint the verifier must check during a run. Targets
are built once from the command line and never change afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Layer(Enum):
    """
    The protocol layer a node belongs to.

    Declaration order is the reporting order: execution before consensus.
    """

    EL = "EL"
    """Execution layer node speaking Ethereum JSON-RPC."""

    CL = "CL"
    """Consensus layer node speaking the Beacon node HTTP API."""

    @property
    def order(self) -> int:
        """Stable sort key for deterministic reporting."""
        return _LAYER_ORDER[self]


_LAYER_ORDER: dict[Layer, int] = {layer: index for index, layer in enumerate(Layer)}


@dataclass(frozen=True, slots=True)
class Target:
    """One endpoint to verify."""

    layer: Layer
    """Which protocol the endpoint speaks."""

    url: str
    """Base URL of the node API, without a trailing slash."""

    required: bool = True
    """Whether the verdict depends on this target."""

    def __str__(self) -> str:
        return f"{self.layer.value} {self.url}"
