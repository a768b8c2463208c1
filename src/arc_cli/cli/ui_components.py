"""CLI UI components (Rich).

Why separate components:
- Keeps command wiring apart from presentation details.
- The renderers receive the domain values exactly as the node returned them;
  formatting (hex encoding included) happens only here.
"""

from __future__ import annotations

import json

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from arc_cli.core.domain.models import NodeInfo, PeerAddress
from arc_cli.core.services.dispatcher import RenderHooks


def hex_digest(data: bytes) -> str:
    """Lowercase hex, two digits per byte, array order, no separator."""

    return "".join(f"{byte:02x}" for byte in data)


def build_node_info_tree(info: NodeInfo) -> Tree:
    tree = Tree(Text("Informations", style="bold cyan"))
    node = tree.add(Text("Node", style="bold"))
    node.add(Text.assemble(("Implementation: ", "dim"), info.implementation))
    node.add(Text.assemble(("Version: ", "dim"), str(info.protocol_version)))
    chain = tree.add(Text("Blockchain", style="bold"))
    chain.add(Text.assemble(("Best Block Hash: ", "dim"), hex_digest(info.best_block_hash)))
    chain.add(Text.assemble(("Genesis Hash: ", "dim"), hex_digest(info.genesis_block_hash)))
    return tree


def node_info_json(info: NodeInfo) -> str:
    return json.dumps(
        {
            "implementation": info.implementation,
            "protocol_version": info.protocol_version,
            "best_block_hash": hex_digest(info.best_block_hash),
            "genesis_block_hash": hex_digest(info.genesis_block_hash),
        },
        indent=2,
    )


def print_error(console: Console, message: str) -> None:
    """One-line error on the given (stderr) console."""

    console.print(
        Text(f"Error: {message}", style="bold red"),
        soft_wrap=True,
        highlight=False,
    )


def build_render_hooks(console: Console, *, as_json: bool = False) -> RenderHooks:
    """Renderers for the three successful outcomes of a dispatch."""

    def node_info(info: NodeInfo) -> None:
        if as_json:
            console.print_json(node_info_json(info))
        else:
            console.print(build_node_info_tree(info))

    def peer_connected(peer: PeerAddress) -> None:
        console.print(Text(f"Node is connecting to peer {peer}", style="green"), soft_wrap=True)

    def peer_disconnected(peer: PeerAddress) -> None:
        console.print(Text(f"Node is disconnecting from peer {peer}", style="green"), soft_wrap=True)

    return RenderHooks(
        node_info=node_info,
        peer_connected=peer_connected,
        peer_disconnected=peer_disconnected,
    )
