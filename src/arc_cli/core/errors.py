"""Errors raised along the connection-and-dispatch pipeline.

Every error is terminal for the invocation: the CLI prints its message on a
single line and exits non-zero.
"""

from __future__ import annotations


class ArcCliError(Exception):
    pass


class InvalidEndpoint(ArcCliError):
    """The service URI is malformed; raised before any I/O."""


class UnresolvableAddress(ArcCliError):
    """A peer address has no IPv4 resolution; raised before connecting."""


class ConnectionFailed(ArcCliError):
    """TCP, TLS or HTTP/2 setup towards the node failed."""


class RpcCallFailed(ArcCliError):
    """The single RPC round trip failed, locally or on the node."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
