"""Peer address resolution.

Turns the `host[:port]` argument of `connect`/`disconnect` into the IPv4
socket address sent to the node. Only IPv4 is accepted; the first IPv4 entry
returned by the system resolver wins, in resolver order.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Awaitable, Callable, Sequence

from arc_cli.core.domain.models import PeerAddress
from arc_cli.core.errors import UnresolvableAddress

logger = logging.getLogger(__name__)

AddrInfo = tuple[int, int, int, str, tuple[Any, ...]]
Lookup = Callable[[str, int], Awaitable[Sequence[AddrInfo]]]


async def _system_lookup(host: str, port: int) -> Sequence[AddrInfo]:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)


def _parse_port(text: str, value: str) -> int:
    if not text.isdigit() or int(text) > 65535:
        raise UnresolvableAddress(f"cannot parse address {value!r}: invalid port {text!r}")
    return int(text)


def split_host_port(value: str, default_port: int) -> tuple[str, int]:
    """Split `host`, `host:port`, `[v6]:port` or a bare IPv6 literal."""

    text = value.strip()
    port_text: str | None
    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            raise UnresolvableAddress(f"cannot parse address {value!r}: unclosed '['")
        host, rest = text[1:end], text[end + 1 :]
        if rest and not rest.startswith(":"):
            raise UnresolvableAddress(f"cannot parse address {value!r}")
        port_text = rest[1:] if rest else None
    elif text.count(":") > 1:
        host, port_text = text, None
    elif ":" in text:
        host, port_text = text.rsplit(":", 1)
    else:
        host, port_text = text, None

    if not host:
        raise UnresolvableAddress(f"cannot parse address {value!r}: missing host")
    port = default_port if port_text is None else _parse_port(port_text, value)
    return host, port


async def resolve_peer_address(
    value: str,
    default_port: int,
    *,
    lookup: Lookup | None = None,
) -> PeerAddress:
    """Resolve `value` and return its first IPv4 socket address."""

    host, port = split_host_port(value, default_port)
    try:
        infos = await (lookup or _system_lookup)(host, port)
    except (OSError, UnicodeError) as exc:
        raise UnresolvableAddress(f"cannot resolve address {value!r}: {exc}") from exc

    for family, _type, _proto, _canonname, sockaddr in infos:
        if family == socket.AF_INET:
            peer = PeerAddress(ip=sockaddr[0], port=sockaddr[1])
            logger.debug("Resolved %s to %s", value, peer)
            return peer

    logger.debug("No IPv4 entry among %d results for %s", len(infos), value)
    raise UnresolvableAddress(f"Could not resolve {value!r} to ipv4")
