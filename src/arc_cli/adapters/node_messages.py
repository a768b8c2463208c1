"""Protobuf messages of the `ensicoin_rpc.Node` service.

The descriptors are assembled here with the protobuf runtime instead of
shipping generated `_pb2` code. Field numbers follow the node's `.proto`:

    Address        { string ip = 1; uint32 port = 2; }
    Peer           { Address address = 1; }
    GetInfoReply   { string implementation = 1; uint32 protocol_version = 2;
                     bytes best_block_hash = 3; bytes genesis_block_hash = 4; }
    ConnectPeerRequest / DisconnectPeerRequest { Peer peer = 1; }
    GetInfoRequest, ConnectPeerReply, DisconnectPeerReply: empty
"""

from __future__ import annotations

from dataclasses import dataclass

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

PACKAGE = "ensicoin_rpc"
SERVICE = "Node"

_Field = descriptor_pb2.FieldDescriptorProto

_MESSAGES: dict[str, list[tuple[str, int, str | None]]] = {
    "Address": [("ip", _Field.TYPE_STRING, None), ("port", _Field.TYPE_UINT32, None)],
    "Peer": [("address", _Field.TYPE_MESSAGE, "Address")],
    "GetInfoRequest": [],
    "GetInfoReply": [
        ("implementation", _Field.TYPE_STRING, None),
        ("protocol_version", _Field.TYPE_UINT32, None),
        ("best_block_hash", _Field.TYPE_BYTES, None),
        ("genesis_block_hash", _Field.TYPE_BYTES, None),
    ],
    "ConnectPeerRequest": [("peer", _Field.TYPE_MESSAGE, "Peer")],
    "ConnectPeerReply": [],
    "DisconnectPeerRequest": [("peer", _Field.TYPE_MESSAGE, "Peer")],
    "DisconnectPeerReply": [],
}

_METHODS = {
    "GetInfo": ("GetInfoRequest", "GetInfoReply"),
    "ConnectPeer": ("ConnectPeerRequest", "ConnectPeerReply"),
    "DisconnectPeer": ("DisconnectPeerRequest", "DisconnectPeerReply"),
}


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name=f"{PACKAGE}/node.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for name, fields in _MESSAGES.items():
        message = proto.message_type.add(name=name)
        for number, (field_name, kind, type_name) in enumerate(fields, start=1):
            field = message.field.add(
                name=field_name,
                number=number,
                type=kind,
                label=_Field.LABEL_OPTIONAL,
            )
            if type_name:
                field.type_name = f".{PACKAGE}.{type_name}"

    service = proto.service.add(name=SERVICE)
    for method, (request, reply) in _METHODS.items():
        service.method.add(
            name=method,
            input_type=f".{PACKAGE}.{request}",
            output_type=f".{PACKAGE}.{reply}",
        )
    return proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_file_descriptor().SerializeToString())


def _message_class(name: str) -> type[Message]:
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.{name}"))


Address = _message_class("Address")
Peer = _message_class("Peer")
GetInfoRequest = _message_class("GetInfoRequest")
GetInfoReply = _message_class("GetInfoReply")
ConnectPeerRequest = _message_class("ConnectPeerRequest")
ConnectPeerReply = _message_class("ConnectPeerReply")
DisconnectPeerRequest = _message_class("DisconnectPeerRequest")
DisconnectPeerReply = _message_class("DisconnectPeerReply")


@dataclass(frozen=True)
class RpcMethod:
    """A unary method of the `Node` service."""

    name: str
    request_type: type[Message]
    reply_type: type[Message]

    @property
    def path(self) -> str:
        return f"/{PACKAGE}.{SERVICE}/{self.name}"


GET_INFO = RpcMethod("GetInfo", GetInfoRequest, GetInfoReply)
CONNECT_PEER = RpcMethod("ConnectPeer", ConnectPeerRequest, ConnectPeerReply)
DISCONNECT_PEER = RpcMethod("DisconnectPeer", DisconnectPeerRequest, DisconnectPeerReply)
