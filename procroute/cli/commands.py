"""CLI commands for procroute.

Entry point for running the example user server and issuing calls against a
running server through the batched client.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from procroute import __logo__, __version__
from procroute.cli.shared.logging_utils import configure_logging
from procroute.cli.shared.network_utils import is_port_in_use

app = typer.Typer(
    name="procroute",
    help=f"{__logo__} procroute - typed procedure calls over HTTP",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} procroute v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """procroute - typed procedure calls over HTTP."""
    pass


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Bind host (default from config)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    log_level: str = typer.Option(None, "--log-level", help="Log level (default from config)"),
    log_file: Path = typer.Option(None, "--log-file", help="Also write logs to this rotating file"),
):
    """Start the example user server (userList, userById, userCreate)."""
    from procroute.api.server import run_server
    from procroute.config.access import get_server_config
    from procroute.users import build_user_router

    server_cfg = get_server_config()
    host = host or server_cfg.host
    port = port or server_cfg.port
    configure_logging(log_level or server_cfg.log_level, log_file)

    if is_port_in_use(host, port):
        console.print(
            f"[red]Port {port} is already in use.[/red] "
            f"Use [cyan]--port[/cyan] to choose another port (current: {host}:{port})."
        )
        raise typer.Exit(1)

    console.print(f"{__logo__} Serving procedures on http://{host}:{port}{server_cfg.path}")
    run_server(build_user_router(), host=host, port=port, path=server_cfg.path)


@app.command()
def procedures():
    """List the example router's procedures."""
    from procroute.users import build_user_router

    table = Table(title="Procedures")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    for name, kind in build_user_router().signature().items():
        table.add_row(name, kind.value)
    console.print(table)


@app.command()
def call(
    name: str = typer.Argument(..., help="Procedure name, e.g. userById"),
    input_json: str = typer.Argument(None, help="Procedure input as JSON, e.g. '\"1\"'"),
    mutation: bool = typer.Option(False, "--mutation", "-m", help="Send as a mutation instead of a query"),
    url: str = typer.Option(None, "--url", "-u", help="RPC endpoint URL (default from config)"),
):
    """Invoke one procedure on a running server and print its output."""
    from procroute.client import create_client
    from procroute.config.access import get_client_config
    from procroute.rpc.procedures import ProcedureKind
    from procroute.utils.exceptions import ProcrouteError

    try:
        payload: Any = json.loads(input_json) if input_json is not None else None
    except json.JSONDecodeError as e:
        console.print(f"[red]Input is not valid JSON:[/red] {e.msg}")
        raise typer.Exit(2)

    kind = ProcedureKind.MUTATION if mutation else ProcedureKind.QUERY
    client_cfg = get_client_config()

    async def _run() -> Any:
        async with create_client(url, config=client_cfg) as client:
            return await client.call(name, kind, payload)

    try:
        output = asyncio.run(_run())
    except ProcrouteError as e:
        console.print(f"[red]{e.code}[/red]: {e.message}")
        raise typer.Exit(1)
    console.print_json(json.dumps(output))


if __name__ == "__main__":
    app()
