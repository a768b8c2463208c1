from __future__ import annotations

import pytest

from arc_cli.core.domain.models import Action, Endpoint, Invocation, NodeInfo, OutputFormat, PeerAddress
from arc_cli.core.errors import ConnectionFailed, InvalidEndpoint, RpcCallFailed, UnresolvableAddress
from arc_cli.core.services.dispatcher import dispatch
from conftest import FakeNodeClient, RecordingConnector


async def _resolve_unreachable(value: str, default_port: int) -> PeerAddress:
    raise UnresolvableAddress(f"Could not resolve {value!r} to ipv4")


@pytest.mark.asyncio
async def test_getinfo_hands_node_values_to_renderer(settings, connector, fake_client, renderer) -> None:
    invocation = Invocation(endpoint="http://localhost:4225", action=Action.GETINFO)

    await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert connector.endpoints == [Endpoint(scheme="http", host="localhost", port=4225)]
    assert fake_client.calls == [("get_info", None)]
    assert fake_client.closed
    [(event, info)] = renderer.events
    assert event == "node_info"
    assert info == NodeInfo(
        implementation="node-x",
        protocol_version=3,
        best_block_hash=b"\xde\xad",
        genesis_block_hash=b"\xbe\xef",
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("action", "call", "event"),
    [
        (Action.CONNECT, "connect_peer", "peer_connected"),
        (Action.DISCONNECT, "disconnect_peer", "peer_disconnected"),
    ],
)
async def test_peer_actions_issue_exactly_one_call(settings, connector, fake_client, renderer, action, call, event) -> None:
    invocation = Invocation(endpoint="http://localhost:4225", action=action, peer="127.0.0.1:4225")

    await dispatch(invocation, settings, renderer.hooks, connector=connector)

    expected = PeerAddress(ip="127.0.0.1", port=4225)
    assert len(connector.endpoints) == 1
    assert fake_client.calls == [(call, expected)]
    assert renderer.events == [(event, expected)]


@pytest.mark.asyncio
async def test_peer_without_port_uses_configured_default(settings, connector, fake_client, renderer) -> None:
    seen: list[tuple[str, int]] = []

    async def resolver(value: str, default_port: int) -> PeerAddress:
        seen.append((value, default_port))
        return PeerAddress(ip="10.1.1.1", port=default_port)

    invocation = Invocation(endpoint="http://localhost:4225", action=Action.CONNECT, peer="seed.example")
    await dispatch(invocation, settings, renderer.hooks, connector=connector, resolver=resolver)

    assert seen == [("seed.example", settings.default_peer_port)]
    assert fake_client.calls == [("connect_peer", PeerAddress(ip="10.1.1.1", port=4224))]


@pytest.mark.asyncio
@pytest.mark.parametrize("uri", ["ftp://localhost:4225", "localhost:4225", ""])
async def test_invalid_endpoint_never_connects(settings, connector, renderer, uri) -> None:
    invocation = Invocation(endpoint=uri, action=Action.GETINFO)

    with pytest.raises(InvalidEndpoint):
        await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert connector.endpoints == []
    assert renderer.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("action", [Action.CONNECT, Action.DISCONNECT])
@pytest.mark.parametrize("peer", ["127.0.0.1:notaport", "", "[::1"])
async def test_malformed_peer_never_connects(settings, connector, renderer, action, peer) -> None:
    invocation = Invocation(endpoint="http://localhost:4225", action=action, peer=peer)

    with pytest.raises(UnresolvableAddress):
        await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert connector.endpoints == []
    assert renderer.events == []


@pytest.mark.asyncio
async def test_unresolvable_peer_never_connects(settings, connector, renderer) -> None:
    invocation = Invocation(endpoint="http://localhost:4225", action=Action.CONNECT, peer="v6only.example")

    with pytest.raises(UnresolvableAddress):
        await dispatch(
            invocation, settings, renderer.hooks, connector=connector, resolver=_resolve_unreachable
        )

    assert connector.endpoints == []


@pytest.mark.asyncio
async def test_endpoint_is_validated_before_peer_resolution(settings, connector, renderer) -> None:
    invocation = Invocation(endpoint="not a uri", action=Action.CONNECT, peer="127.0.0.1:4225")

    with pytest.raises(InvalidEndpoint):
        await dispatch(
            invocation, settings, renderer.hooks, connector=connector, resolver=_resolve_unreachable
        )


@pytest.mark.asyncio
async def test_connection_failure_renders_nothing(settings, renderer) -> None:
    connector = RecordingConnector(error=ConnectionFailed("HTTP/2 connection failed: refused"))
    invocation = Invocation(endpoint="http://localhost:4225", action=Action.GETINFO)

    with pytest.raises(ConnectionFailed):
        await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert connector.client.calls == []
    assert renderer.events == []


@pytest.mark.asyncio
async def test_rpc_failure_renders_nothing_and_closes(settings, renderer) -> None:
    client = FakeNodeClient(error=RpcCallFailed("Could not connect to peer: status: UNAVAILABLE", status=14))
    connector = RecordingConnector(client)
    invocation = Invocation(endpoint="http://localhost:4225", action=Action.CONNECT, peer="127.0.0.1:4225")

    with pytest.raises(RpcCallFailed) as excinfo:
        await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert excinfo.value.status == 14
    assert len(client.calls) == 1
    assert client.closed
    assert renderer.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("action", [Action.CONNECT, Action.DISCONNECT])
async def test_peer_action_without_peer_never_connects(settings, connector, renderer, action) -> None:
    invocation = Invocation.model_construct(
        endpoint="http://localhost:4225",
        action=action,
        peer=None,
        output=OutputFormat.TEXT,
    )

    with pytest.raises(UnresolvableAddress, match="requires a peer address"):
        await dispatch(invocation, settings, renderer.hooks, connector=connector)

    assert connector.endpoints == []
    assert renderer.events == []
