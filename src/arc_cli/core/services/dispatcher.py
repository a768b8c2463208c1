"""Connection-and-dispatch pipeline.

One invocation runs a strict sequence of fallible steps and stops at the
first `ArcCliError`:

1. validate the endpoint (local);
2. resolve the peer address for connect/disconnect (DNS, before any
   connection to the node);
3. open the single HTTP/2 connection;
4. issue exactly one RPC;
5. hand the result to the renderer.

Nothing is rendered when a step fails. Printing stays in the CLI layer; this
module only calls the hooks it is given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from arc_cli.adapters.transport import open_node_client
from arc_cli.core.config import AppSettings
from arc_cli.core.domain.models import Action, Invocation, NodeInfo, PeerAddress
from arc_cli.core.errors import UnresolvableAddress
from arc_cli.core.interfaces.node import Connector, Resolver
from arc_cli.core.services.endpoint import validate_endpoint
from arc_cli.core.services.resolver import resolve_peer_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderHooks:
    """Callbacks receiving the outcome of a successful invocation."""

    node_info: Callable[[NodeInfo], None]
    peer_connected: Callable[[PeerAddress], None]
    peer_disconnected: Callable[[PeerAddress], None]


async def dispatch(
    invocation: Invocation,
    settings: AppSettings,
    hooks: RenderHooks,
    *,
    connector: Connector = open_node_client,
    resolver: Resolver = resolve_peer_address,
) -> None:
    """Run `invocation` to completion or raise the first pipeline error."""

    endpoint = validate_endpoint(invocation.endpoint)

    peer: PeerAddress | None = None
    if invocation.action.needs_peer:
        if invocation.peer is None:
            raise UnresolvableAddress(f"'{invocation.action.value}' requires a peer address")
        peer = await resolver(invocation.peer, settings.default_peer_port)

    logger.debug("Dispatching %s to %s", invocation.action.value, endpoint)
    client = await connector(endpoint, settings)
    async with client:
        if peer is None:
            hooks.node_info(await client.get_info())
        elif invocation.action is Action.CONNECT:
            await client.connect_peer(peer)
            hooks.peer_connected(peer)
        else:
            await client.disconnect_peer(peer)
            hooks.peer_disconnected(peer)
