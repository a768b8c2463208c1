"""Transport connector: one HTTP/2 connection per invocation.

The connection is opened and negotiated eagerly: TCP, then TLS with ALPN `h2`
for `https` or HTTP/2 prior knowledge for `http`, then the HTTP/2 preface and
the server's SETTINGS frame. A peer that fails any of these steps is reported
before a request is built. The HTTP/2 state machine is driven with `h2` behind
an httpx transport bound to that one connection: no pool, no reconnection.
Response trailers are kept in `response.extensions["trailers"]`.
"""

from __future__ import annotations

import contextlib
import logging
import ssl
from typing import Iterator

import h2.config
import h2.connection
import h2.events
import h2.exceptions
import httpcore
import httpx

from arc_cli.adapters.http_client import build_async_client
from arc_cli.adapters.rpc_client import NodeRpcClient
from arc_cli.core.config import AppSettings
from arc_cli.core.domain.models import Endpoint
from arc_cli.core.errors import ConnectionFailed

logger = logging.getLogger(__name__)

_READ_SIZE = 64 * 1024

_HOP_BY_HOP = frozenset({b"host", b"connection", b"keep-alive", b"proxy-connection", b"transfer-encoding", b"upgrade"})

_EXCEPTION_MAP: tuple[tuple[type[Exception], type[httpx.TransportError]], ...] = (
    (httpcore.ConnectTimeout, httpx.ConnectTimeout),
    (httpcore.ReadTimeout, httpx.ReadTimeout),
    (httpcore.WriteTimeout, httpx.WriteTimeout),
    (httpcore.TimeoutException, httpx.TimeoutException),
    (httpcore.ConnectError, httpx.ConnectError),
    (httpcore.ReadError, httpx.ReadError),
    (httpcore.WriteError, httpx.WriteError),
    (httpcore.NetworkError, httpx.NetworkError),
    (httpcore.RemoteProtocolError, httpx.RemoteProtocolError),
    (httpcore.LocalProtocolError, httpx.LocalProtocolError),
    (httpcore.ProtocolError, httpx.ProtocolError),
    (h2.exceptions.ProtocolError, httpx.RemoteProtocolError),
)

_HANDSHAKE_ERRORS = (
    httpcore.NetworkError,
    httpcore.TimeoutException,
    httpcore.ProtocolError,
    h2.exceptions.ProtocolError,
    OSError,
)


@contextlib.contextmanager
def _httpx_errors(request: httpx.Request) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        for source_exc, httpx_exc in _EXCEPTION_MAP:
            if isinstance(exc, source_exc):
                raise httpx_exc(str(exc) or type(exc).__name__, request=request) from exc
        raise


def _request_headers(request: httpx.Request) -> list[tuple[bytes, bytes]]:
    authority = request.headers.get("host", "").encode("ascii") or request.url.netloc
    headers = [
        (b":method", request.method.encode("ascii")),
        (b":authority", authority),
        (b":scheme", request.url.raw_scheme),
        (b":path", request.url.raw_path),
    ]
    for name, value in request.headers.raw:
        name = name.lower()
        if name not in _HOP_BY_HOP:
            headers.append((name, value))
    return headers


def _split_response_headers(raw: list[tuple[bytes, bytes]]) -> tuple[int, list[tuple[bytes, bytes]]]:
    status = 0
    headers: list[tuple[bytes, bytes]] = []
    for name, value in raw:
        if name == b":status":
            status = int(value)
        elif not name.startswith(b":"):
            headers.append((name, value))
    return status, headers


class SingleConnectionTransport(httpx.AsyncBaseTransport):
    """httpx transport sending every request over one HTTP/2 connection."""

    def __init__(self, stream: httpcore.AsyncNetworkStream) -> None:
        self._stream = stream
        self._h2 = h2.connection.H2Connection(
            config=h2.config.H2Configuration(client_side=True, header_encoding=None)
        )
        self._events: dict[int, list[h2.events.Event]] = {}
        self._settings_received = False
        self._terminated: h2.events.ConnectionTerminated | None = None

    async def handshake(self, timeout: float | None = None) -> None:
        """Send the client preface and wait for the server's SETTINGS frame."""

        self._h2.initiate_connection()
        await self._flush(timeout)
        while not self._settings_received:
            await self._receive_events(timeout)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        timeouts = request.extensions.get("timeout", {})
        read_timeout = timeouts.get("read")
        write_timeout = timeouts.get("write")
        body = await request.aread()

        with _httpx_errors(request):
            stream_id = self._h2.get_next_available_stream_id()
            self._events[stream_id] = []
            try:
                self._h2.send_headers(stream_id, _request_headers(request), end_stream=not body)
                await self._flush(write_timeout)
                if body:
                    await self._send_body(stream_id, body, read_timeout, write_timeout)
                return await self._receive_response(request, stream_id, read_timeout)
            finally:
                del self._events[stream_id]

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def _send_body(
        self,
        stream_id: int,
        body: bytes,
        read_timeout: float | None,
        write_timeout: float | None,
    ) -> None:
        offset = 0
        while offset < len(body):
            size = min(self._h2.local_flow_control_window(stream_id), self._h2.max_outbound_frame_size)
            if size <= 0:
                # Window exhausted; wait for WINDOW_UPDATE.
                await self._receive_events(read_timeout)
                continue
            chunk = body[offset : offset + size]
            offset += len(chunk)
            self._h2.send_data(stream_id, chunk)
            await self._flush(write_timeout)
        self._h2.end_stream(stream_id)
        await self._flush(write_timeout)

    async def _receive_response(
        self,
        request: httpx.Request,
        stream_id: int,
        timeout: float | None,
    ) -> httpx.Response:
        status = 0
        headers: list[tuple[bytes, bytes]] = []
        trailers: list[tuple[bytes, bytes]] = []
        content = bytearray()
        while True:
            event = await self._next_event(stream_id, timeout)
            if isinstance(event, h2.events.ResponseReceived):
                status, headers = _split_response_headers(event.headers)
            elif isinstance(event, h2.events.DataReceived):
                content += event.data
                self._h2.acknowledge_received_data(event.flow_controlled_length, stream_id)
                await self._flush(timeout)
            elif isinstance(event, h2.events.TrailersReceived):
                trailers = _split_response_headers(event.headers)[1]
            elif isinstance(event, h2.events.StreamReset):
                raise httpcore.RemoteProtocolError(f"stream reset by server (error code {event.error_code})")
            elif isinstance(event, h2.events.StreamEnded):
                break

        return httpx.Response(
            status_code=status,
            headers=headers,
            content=bytes(content),
            extensions={"http_version": b"HTTP/2", "trailers": trailers},
        )

    async def _next_event(self, stream_id: int, timeout: float | None) -> h2.events.Event:
        events = self._events[stream_id]
        while not events:
            await self._receive_events(timeout)
        return events.pop(0)

    async def _receive_events(self, timeout: float | None) -> None:
        if self._terminated is not None:
            raise httpcore.RemoteProtocolError(
                f"connection terminated by server (error code {self._terminated.error_code})"
            )
        data = await self._stream.read(_READ_SIZE, timeout=timeout)
        if not data:
            raise httpcore.RemoteProtocolError("Server disconnected")

        for event in self._h2.receive_data(data):
            if isinstance(event, h2.events.RemoteSettingsChanged):
                self._settings_received = True
            elif isinstance(event, h2.events.ConnectionTerminated):
                self._terminated = event
            else:
                stream_id = getattr(event, "stream_id", 0)
                if stream_id in self._events:
                    self._events[stream_id].append(event)
        await self._flush(timeout)

    async def _flush(self, timeout: float | None) -> None:
        data = self._h2.data_to_send()
        if data:
            await self._stream.write(data, timeout=timeout)


def _alpn_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.set_alpn_protocols(["h2"])
    return context


async def _open_stream(
    endpoint: Endpoint,
    backend: httpcore.AsyncNetworkBackend,
    timeout: float | None,
) -> httpcore.AsyncNetworkStream:
    stream = await backend.connect_tcp(endpoint.host, endpoint.port, timeout=timeout)
    if not endpoint.uses_tls:
        return stream

    stream = await stream.start_tls(_alpn_context(), server_hostname=endpoint.host, timeout=timeout)
    ssl_object = stream.get_extra_info("ssl_object")
    negotiated = ssl_object.selected_alpn_protocol() if ssl_object is not None else None
    if negotiated != "h2":
        await stream.aclose()
        raise ConnectionFailed(
            f"HTTP/2 connection failed: {endpoint} negotiated {negotiated or 'no protocol'} instead of h2"
        )
    return stream


async def open_node_client(
    endpoint: Endpoint,
    settings: AppSettings,
    *,
    network_backend: httpcore.AsyncNetworkBackend | None = None,
) -> NodeRpcClient:
    """Open the single connection to `endpoint` and return a ready client.

    DNS/TCP errors, TLS/ALPN negotiation errors, a peer that does not answer
    the HTTP/2 preface and origin adapter errors all surface as
    `ConnectionFailed`. Nothing is retried.
    """

    backend = network_backend or httpcore.AnyIOBackend()
    timeout = settings.connect_timeout_seconds
    logger.debug("Opening HTTP/2 connection to %s", endpoint)
    try:
        stream = await _open_stream(endpoint, backend, timeout)
    except (httpcore.NetworkError, httpcore.TimeoutException, OSError) as exc:
        raise ConnectionFailed(f"Could not connect to {endpoint}: {exc}") from exc

    transport = SingleConnectionTransport(stream)
    try:
        await transport.handshake(timeout)
    except _HANDSHAKE_ERRORS as exc:
        await transport.aclose()
        raise ConnectionFailed(f"HTTP/2 connection failed: {str(exc) or type(exc).__name__}") from exc

    try:
        http = build_async_client(endpoint, settings, transport=transport)
    except (httpx.InvalidURL, ValueError) as exc:
        await transport.aclose()
        raise ConnectionFailed(f"HTTP/2 connection failed: {exc}") from exc

    logger.debug("Connected to %s", endpoint)
    return NodeRpcClient(http)
