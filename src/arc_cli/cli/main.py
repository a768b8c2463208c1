"""arc-cli command line (Typer).

One front end, three subcommands. Each command builds a single immutable
`Invocation` and hands it to the dispatch pipeline; every `ArcCliError` ends
the process with a one-line message on stderr and exit code 1.

Shell completion scripts come from Typer's `--install-completion` and
`--show-completion` options.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, cast

import typer
from pydantic import ValidationError
from rich.console import Console

from arc_cli.adapters.transport import open_node_client
from arc_cli.cli.ui_components import build_render_hooks, print_error
from arc_cli.core.config import DEFAULT_ENDPOINT, AppSettings
from arc_cli.core.domain.models import Action, Invocation, OutputFormat
from arc_cli.core.errors import ArcCliError
from arc_cli.core.logging import configure_logging
from arc_cli.core.services.dispatcher import dispatch
from arc_cli.core.services.resolver import resolve_peer_address

app = typer.Typer(
    name="arc-cli",
    no_args_is_help=True,
    help="Query and control an ensicoin node through its gRPC interface.",
)

_console = Console()
_err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CliState:
    endpoint: str
    settings: AppSettings


def _state(ctx: typer.Context) -> CliState:
    return cast(CliState, ctx.obj)


def _run(invocation: Invocation, settings: AppSettings) -> None:
    hooks = build_render_hooks(_console, as_json=invocation.output is OutputFormat.JSON)
    try:
        asyncio.run(
            dispatch(
                invocation,
                settings,
                hooks,
                connector=open_node_client,
                resolver=resolve_peer_address,
            )
        )
    except ArcCliError as exc:
        logger.debug("%s failed", invocation.action.value, exc_info=True)
        print_error(_err_console, str(exc))
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    address: Optional[str] = typer.Option(
        None,
        "--address",
        "-a",
        help=f"gRPC address of the node [default: {DEFAULT_ENDPOINT}]",
        show_default=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging on stderr."),
) -> None:
    """Command-line client for an ensicoin node."""

    try:
        settings = AppSettings()
    except ValidationError as exc:
        print_error(_err_console, f"Invalid configuration: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=1) from exc

    configure_logging(settings.log_level, verbose=verbose)
    ctx.obj = CliState(endpoint=address if address is not None else settings.endpoint, settings=settings)


@app.command("getinfo")
def getinfo(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print the information as JSON."),
) -> None:
    """Gets some information on the node."""

    state = _state(ctx)
    invocation = Invocation(
        endpoint=state.endpoint,
        action=Action.GETINFO,
        output=OutputFormat.JSON if json_output else OutputFormat.TEXT,
    )
    _run(invocation, state.settings)


@app.command("connect")
def connect(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Peer address, host[:port]."),
) -> None:
    """Connect the node to a remote peer."""

    state = _state(ctx)
    _run(Invocation(endpoint=state.endpoint, action=Action.CONNECT, peer=address), state.settings)


@app.command("disconnect")
def disconnect(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Peer address, host[:port]."),
) -> None:
    """Disconnect the node from a peer."""

    state = _state(ctx)
    _run(Invocation(endpoint=state.endpoint, action=Action.DISCONNECT, peer=address), state.settings)


def run() -> None:
    app(prog_name="arc-cli")
