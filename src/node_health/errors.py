"""
Error taxonomy for the verifier.

Configuration problems abort the run before any polling starts. Adapter
errors describe a single failed poll and are retried by the controller until
the deadline, so they never escape a run.
"""

from __future__ import annotations


class NodeHealthError(Exception):
    """Base class for all verifier errors."""


class ConfigurationError(NodeHealthError):
    """
    Invalid or missing settings.

    Fatal: the CLI exits with a usage error and no node is contacted.
    """


class AdapterError(NodeHealthError):
    """A single poll against a node failed."""


class TransientNetworkError(AdapterError):
    """
    The node could not be reached.

    Covers refused connections, DNS failures and timeouts. The node may simply
    not be up yet, so the poll is retried.
    """


class ProtocolError(AdapterError):
    """
    The node answered, but not with a usable response.

    Covers non-JSON bodies, JSON-RPC error objects, unexpected HTTP statuses
    and payloads missing expected fields. Retried like a transient failure,
    but it usually points at a wrong endpoint rather than a slow node.
    """
