"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Every value here is created once per invocation and never mutated, so all
  models are frozen.
- Validation at construction keeps malformed data out of the pipeline.

Note:
- These models describe *what* travels through the pipeline, not *how* it is
  encoded on the wire (see `adapters.node_messages`).
"""

from __future__ import annotations

import ipaddress
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict


class Endpoint(BaseModel):
    """Validated service URI of the node."""

    model_config = ConfigDict(frozen=True)

    scheme: str = Field(
        ...,
        pattern=r"^https?$",
        description="URI scheme; 'https' selects TLS with ALPN h2.",
    )
    host: str = Field(
        ...,
        min_length=1,
        description="Host name or IP literal of the node.",
    )
    port: int = Field(
        ...,
        ge=1,
        le=65535,
        description="TCP port of the gRPC service.",
    )

    @property
    def authority(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    @property
    def uses_tls(self) -> bool:
        return self.scheme == "https"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.authority}"


class PeerAddress(BaseModel):
    """IPv4 socket address of a peer, as sent to the node."""

    model_config = ConfigDict(frozen=True)

    ip: str = Field(
        ...,
        description="Dotted-decimal IPv4 address.",
    )
    port: int = Field(
        ...,
        ge=0,
        le=65535,
        description="16-bit TCP port.",
    )

    @field_validator("ip")
    @classmethod
    def _ipv4_only(cls, value: str) -> str:
        return str(ipaddress.IPv4Address(value))

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"


class NodeInfo(BaseModel):
    """Payload of a GetInfo reply, kept exactly as the node sent it."""

    model_config = ConfigDict(frozen=True)

    implementation: str = Field(
        default="",
        description="Name of the node implementation.",
    )
    protocol_version: int = Field(
        default=0,
        ge=0,
        le=0xFFFFFFFF,
        description="Protocol version spoken by the node (uint32).",
    )
    best_block_hash: bytes = Field(
        default=b"",
        description="Hash of the tip of the best chain.",
    )
    genesis_block_hash: bytes = Field(
        default=b"",
        description="Hash of the genesis block.",
    )


class Action(str, Enum):
    """Subcommands understood by the dispatcher."""

    GETINFO = "getinfo"
    CONNECT = "connect"
    DISCONNECT = "disconnect"

    @property
    def needs_peer(self) -> bool:
        return self is not Action.GETINFO


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class Invocation(BaseModel):
    """Parsed command line: the whole configuration of one run."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(
        ...,
        description="Service URI as typed by the user (validated later).",
    )
    action: Action
    peer: str | None = Field(
        default=None,
        description="Raw host[:port] string for connect/disconnect.",
    )
    output: OutputFormat = OutputFormat.TEXT

    @model_validator(mode="after")
    def _peer_matches_action(self) -> "Invocation":
        if self.action.needs_peer and self.peer is None:
            raise ValueError(f"'{self.action.value}' requires a peer address")
        if not self.action.needs_peer and self.peer is not None:
            raise ValueError(f"'{self.action.value}' takes no peer address")
        return self
