"""
Verifier configuration.

Settings come from three places, later ones winning:

1. Built-in defaults (below).
2. An optional YAML config file.
3. Command line flags.

Which layers to check is only ever decided on the command line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Final

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from node_health.adapters import DEFAULT_REQUEST_TIMEOUT
from node_health.errors import ConfigurationError
from node_health.sync import DEFAULT_STALENESS_THRESHOLD
from node_health.targets import Layer, Target

DEFAULT_EL_ENDPOINT: Final = "http://localhost:8545"
"""Default execution layer JSON-RPC endpoint."""

DEFAULT_CL_ENDPOINT: Final = "http://localhost:3500"
"""Default consensus layer Beacon API endpoint."""

DEFAULT_POLL_INTERVAL: Final[float] = 5.0
"""Seconds between two polls of the same target."""

DEFAULT_DEADLINE: Final[float] = 300.0
"""Seconds the whole run may take before unconverged targets time out."""


@dataclass(frozen=True, slots=True)
class VerifierConfig:
    """Validated settings for one verification run."""

    check_el: bool = False
    """Require and poll the execution layer node."""

    check_cl: bool = False
    """Require and poll the consensus layer node."""

    el_rpc_endpoint: str = DEFAULT_EL_ENDPOINT
    """Execution layer base URL."""

    cl_rpc_endpoint: str = DEFAULT_CL_ENDPOINT
    """Consensus layer base URL."""

    accept_pending: bool = False
    """Count an in-progress sync as success."""

    stale_threshold: float = DEFAULT_STALENESS_THRESHOLD
    """Maximum head age in seconds for a synced node."""

    interval: float = DEFAULT_POLL_INTERVAL
    """Seconds between polls of one target."""

    timeout: float = DEFAULT_DEADLINE
    """Overall deadline in seconds."""

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    """Per-request HTTP timeout in seconds."""

    def __post_init__(self) -> None:
        """Reject settings that cannot produce a meaningful run."""
        if not (self.check_el or self.check_cl):
            raise ConfigurationError("at least one of --el / --cl must be given")

        if self.check_el:
            _check_url(self.el_rpc_endpoint, "--el-rpc-endpoint")
        if self.check_cl:
            _check_url(self.cl_rpc_endpoint, "--cl-rpc-endpoint")

        for name in ("stale_threshold", "interval", "timeout", "request_timeout"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value}")
        for name in ("interval", "timeout", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.stale_threshold < 0:
            raise ConfigurationError(
                f"stale_threshold must not be negative, got {self.stale_threshold}"
            )

    @property
    def targets(self) -> list[Target]:
        """
        The targets selected for this run, in reporting order.

        An unselected layer produces no target at all.
        """
        selected: list[Target] = []
        if self.check_el:
            selected.append(Target(layer=Layer.EL, url=self.el_rpc_endpoint.rstrip("/")))
        if self.check_cl:
            selected.append(Target(layer=Layer.CL, url=self.cl_rpc_endpoint.rstrip("/")))
        return selected

    @classmethod
    def from_sources(
        cls,
        *,
        check_el: bool,
        check_cl: bool,
        config_file: ConfigFile | None = None,
        **overrides: Any,
    ) -> VerifierConfig:
        """
        Merge defaults, the config file and command line overrides.

        Overrides whose value is None are treated as "not given".

        Raises:
            ConfigurationError: If the merged settings are invalid.
        """
        values: dict[str, Any] = {}
        if config_file is not None:
            values.update(config_file.as_settings())
        values.update({key: value for key, value in overrides.items() if value is not None})

        known = {field.name for field in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"unknown settings: {', '.join(sorted(unknown))}")

        return cls(check_el=check_el, check_cl=check_cl, **values)


class ConfigFile(BaseModel):
    """
    Schema of the optional YAML config file.

    Example::

        el_rpc_endpoint: http://geth:8545
        cl_rpc_endpoint: http://prysm:3500
        pending: true
        stale_threshold: 60
        interval: 5
        timeout: 600
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    el_rpc_endpoint: str | None = None
    cl_rpc_endpoint: str | None = None
    pending: bool | None = None
    stale_threshold: float | None = None
    interval: float | None = None
    timeout: float | None = None
    request_timeout: float | None = None

    @classmethod
    def from_yaml(cls, path: Path) -> ConfigFile:
        """
        Load and validate a config file.

        Raises:
            ConfigurationError: If the file is unreadable, not YAML, or has
                unknown or mistyped keys.
        """
        try:
            with path.open(encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except OSError as exc:
            raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"config file {path} is not valid YAML: {exc}") from exc

        # An empty file is an empty mapping.
        if raw is None:
            raw = {}
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid config file {path}: {exc}") from exc

    def as_settings(self) -> dict[str, Any]:
        """Return the keys that were set, named like VerifierConfig fields."""
        settings = self.model_dump(exclude_none=True)
        if "pending" in settings:
            settings["accept_pending"] = settings.pop("pending")
        return settings


def _check_url(url: str, flag: str) -> None:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"{flag}: invalid URL {url!r}: {exc}") from exc
    if parsed.scheme not in {"http", "https"}:
        raise ConfigurationError(f"{flag}: URL must use http or https, got {url!r}")
    if not parsed.host:
        raise ConfigurationError(f"{flag}: URL has no host: {url!r}")
    if parsed.port is not None and not 0 < parsed.port <= 65535:
        raise ConfigurationError(f"{flag}: port out of range: {url!r}")
