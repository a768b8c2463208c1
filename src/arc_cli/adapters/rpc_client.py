"""gRPC facade of the `ensicoin_rpc.Node` service.

Each method is a single unary call: one length-prefixed protobuf message in
the request body, one in the reply. Every failure of the round trip,
transport or remote, is raised as `RpcCallFailed`. The gRPC status is read from
the response headers (trailers-only replies) or from the HTTP/2 trailers the
transport leaves in `response.extensions["trailers"]`.
"""

from __future__ import annotations

import logging
import struct
from urllib.parse import unquote

import httpx
from google.protobuf.message import DecodeError, Message

from arc_cli.adapters import node_messages as pb
from arc_cli.core.domain.models import NodeInfo, PeerAddress
from arc_cli.core.errors import RpcCallFailed

logger = logging.getLogger(__name__)

GRPC_CONTENT_TYPE = "application/grpc"

_FRAME_HEADER = struct.Struct(">BI")

_STATUS_NAMES = {
    0: "OK",
    1: "CANCELLED",
    2: "UNKNOWN",
    3: "INVALID_ARGUMENT",
    4: "DEADLINE_EXCEEDED",
    5: "NOT_FOUND",
    6: "ALREADY_EXISTS",
    7: "PERMISSION_DENIED",
    8: "RESOURCE_EXHAUSTED",
    9: "FAILED_PRECONDITION",
    10: "ABORTED",
    11: "OUT_OF_RANGE",
    12: "UNIMPLEMENTED",
    13: "INTERNAL",
    14: "UNAVAILABLE",
    15: "DATA_LOSS",
    16: "UNAUTHENTICATED",
}


def encode_frame(message: Message) -> bytes:
    """Serialize `message` as an uncompressed gRPC length-prefixed frame."""

    payload = message.SerializeToString()
    return _FRAME_HEADER.pack(0, len(payload)) + payload


def decode_frames(body: bytes) -> list[bytes]:
    """Split a gRPC body into message payloads; compression is not supported."""

    frames: list[bytes] = []
    offset = 0
    while offset < len(body):
        if len(body) - offset < _FRAME_HEADER.size:
            raise RpcCallFailed("truncated gRPC frame header")
        compressed, length = _FRAME_HEADER.unpack_from(body, offset)
        offset += _FRAME_HEADER.size
        if compressed:
            raise RpcCallFailed("compressed gRPC messages are not supported")
        if len(body) - offset < length:
            raise RpcCallFailed("truncated gRPC message")
        frames.append(body[offset : offset + length])
        offset += length
    return frames


def _grpc_error(headers: httpx.Headers) -> RpcCallFailed | None:
    grpc_status = headers.get("grpc-status")
    if grpc_status is None or grpc_status == "0":
        return None
    code = int(grpc_status) if grpc_status.isdigit() else None
    name = _STATUS_NAMES.get(code, grpc_status) if code is not None else grpc_status
    detail = unquote(headers.get("grpc-message", ""))
    return RpcCallFailed(f"status: {name}, message: {detail!r}", status=code)


def _check_status(response: httpx.Response) -> None:
    if response.status_code != 200:
        raise RpcCallFailed(f"HTTP status {response.status_code}")

    # Trailers-only responses carry the status in the headers.
    error = _grpc_error(response.headers)
    if error is not None:
        raise error

    content_type = response.headers.get("content-type", "")
    if not content_type.startswith(GRPC_CONTENT_TYPE):
        raise RpcCallFailed(f"unexpected content-type {content_type!r}")

    trailers = httpx.Headers(response.extensions.get("trailers", []))
    if "grpc-status" not in response.headers and "grpc-status" not in trailers:
        raise RpcCallFailed("reply carried no grpc-status")
    error = _grpc_error(trailers)
    if error is not None:
        raise error


def _peer_message(peer: PeerAddress) -> Message:
    return pb.Peer(address=pb.Address(ip=peer.ip, port=peer.port))


class NodeRpcClient:
    """Client of one node, bound to one open HTTP/2 connection.

    Use as an async context manager; leaving it closes the connection.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def __aenter__(self) -> "NodeRpcClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _unary(self, method: pb.RpcMethod, request: Message, failure: str) -> Message:
        logger.debug("Calling %s", method.path)
        try:
            try:
                response = await self._http.post(
                    method.path,
                    content=encode_frame(request),
                    headers={"content-type": GRPC_CONTENT_TYPE, "te": "trailers"},
                )
            except httpx.HTTPError as exc:
                raise RpcCallFailed(str(exc) or type(exc).__name__) from exc
            _check_status(response)

            frames = decode_frames(response.content)
            if len(frames) != 1:
                raise RpcCallFailed(f"expected one reply message, got {len(frames)}")
            reply = method.reply_type()
            try:
                reply.ParseFromString(frames[0])
            except DecodeError as exc:
                raise RpcCallFailed(f"malformed {method.name} reply: {exc}") from exc
        except RpcCallFailed as exc:
            raise RpcCallFailed(f"{failure}: {exc}", status=exc.status) from exc
        return reply

    async def get_info(self) -> NodeInfo:
        reply = await self._unary(pb.GET_INFO, pb.GetInfoRequest(), "Error retrieving information")
        return NodeInfo(
            implementation=reply.implementation,
            protocol_version=reply.protocol_version,
            best_block_hash=bytes(reply.best_block_hash),
            genesis_block_hash=bytes(reply.genesis_block_hash),
        )

    async def connect_peer(self, peer: PeerAddress) -> None:
        request = pb.ConnectPeerRequest(peer=_peer_message(peer))
        await self._unary(pb.CONNECT_PEER, request, "Could not connect to peer")

    async def disconnect_peer(self, peer: PeerAddress) -> None:
        request = pb.DisconnectPeerRequest(peer=_peer_message(peer))
        await self._unary(pb.DISCONNECT_PEER, request, "Could not disconnect from peer")
