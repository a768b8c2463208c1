"""Contract of a connected node client.

Design rules:
- Every method is one unary round trip over an already open connection.
- The client is an async context manager; leaving it closes the connection.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

from arc_cli.core.config import AppSettings
from arc_cli.core.domain.models import Endpoint, NodeInfo, PeerAddress


@runtime_checkable
class NodeClient(Protocol):
    async def __aenter__(self) -> "NodeClient": ...

    async def __aexit__(self, *exc_info: object) -> None: ...

    async def get_info(self) -> NodeInfo:
        """Fetch implementation, protocol version and chain hashes."""

        ...

    async def connect_peer(self, peer: PeerAddress) -> None:
        """Ask the node to open an outbound connection to `peer`."""

        ...

    async def disconnect_peer(self, peer: PeerAddress) -> None:
        """Ask the node to drop its connection to `peer`."""

        ...


Connector = Callable[[Endpoint, AppSettings], Awaitable[NodeClient]]
Resolver = Callable[[str, int], Awaitable[PeerAddress]]
