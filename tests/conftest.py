from __future__ import annotations

import pytest

from arc_cli.core.config import AppSettings
from arc_cli.core.domain.models import Endpoint, NodeInfo, PeerAddress
from arc_cli.core.services.dispatcher import RenderHooks


class FakeNodeClient:
    """In-memory `NodeClient` recording every call."""

    def __init__(self, info: NodeInfo | None = None, error: Exception | None = None) -> None:
        self.info = info or NodeInfo(
            implementation="node-x",
            protocol_version=3,
            best_block_hash=bytes([0xDE, 0xAD]),
            genesis_block_hash=bytes([0xBE, 0xEF]),
        )
        self.error = error
        self.calls: list[tuple[str, PeerAddress | None]] = []
        self.closed = False

    async def __aenter__(self) -> "FakeNodeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    def _record(self, name: str, peer: PeerAddress | None) -> None:
        self.calls.append((name, peer))
        if self.error is not None:
            raise self.error

    async def get_info(self) -> NodeInfo:
        self._record("get_info", None)
        return self.info

    async def connect_peer(self, peer: PeerAddress) -> None:
        self._record("connect_peer", peer)

    async def disconnect_peer(self, peer: PeerAddress) -> None:
        self._record("disconnect_peer", peer)


class RecordingConnector:
    """Connector double: counts connection attempts."""

    def __init__(self, client: FakeNodeClient | None = None, error: Exception | None = None) -> None:
        self.client = client or FakeNodeClient()
        self.error = error
        self.endpoints: list[Endpoint] = []

    async def __call__(self, endpoint: Endpoint, settings: AppSettings) -> FakeNodeClient:
        self.endpoints.append(endpoint)
        if self.error is not None:
            raise self.error
        return self.client


class RecordingRenderer:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    @property
    def hooks(self) -> RenderHooks:
        return RenderHooks(
            node_info=lambda info: self.events.append(("node_info", info)),
            peer_connected=lambda peer: self.events.append(("peer_connected", peer)),
            peer_disconnected=lambda peer: self.events.append(("peer_disconnected", peer)),
        )


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None)


@pytest.fixture
def fake_client() -> FakeNodeClient:
    return FakeNodeClient()


@pytest.fixture
def connector(fake_client: FakeNodeClient) -> RecordingConnector:
    return RecordingConnector(fake_client)


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()
