"""Client configuration.

Why here:
- Centralizes environment variables (pydantic-settings) away from the CLI.
- The CLI builds one `AppSettings` at startup and passes it down explicitly;
  nothing reads the environment after that.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from arc_cli import __version__

DEFAULT_ENDPOINT = "http://localhost:4225"
DEFAULT_PEER_PORT = 4224


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "arc-cli"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "arc-cli"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "arc-cli"
    return Path.home() / ".config" / "arc-cli"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Central configuration of the client.

    Values come from `ARC_CLI_*` environment variables, then the project
    `.env`, then the per-user `.env`.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARC_CLI_",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        min_length=1,
        description="gRPC address of the node, used when --address is not given.",
    )
    default_peer_port: int = Field(
        default=DEFAULT_PEER_PORT,
        ge=1,
        le=65535,
        description="Port used for peer addresses given without one.",
    )
    connect_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout for connection setup and the RPC call; unset blocks indefinitely.",
    )
    user_agent: str = Field(
        default=f"arc-cli/{__version__}",
        min_length=1,
        description="User-Agent sent with every gRPC request.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
