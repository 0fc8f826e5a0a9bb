# src/mindgate/cli.py
"""
MindGate Command Line Interface (CLI).

A terminal stand-in for the desktop host built with `typer` and `rich`. It
drives the same `GatewayServer` object the host owns.

Usage
-----
    # Serve the web UI and the inference proxy until Ctrl-C
    $ mindgate serve --port 9876

    # Snapshot the shell sources into app/Backups/<DD-MM-YY>/<HHMM>/
    $ mindgate backup

    # Show the most recent snapshot
    $ mindgate latest
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mindgate.core.settings import Settings, load_settings
from mindgate.gateway.server import GatewayServer

load_dotenv()

app = typer.Typer(
    help="MindGate: local gateway and source snapshots for the MIND desktop shell.",
    rich_markup_mode="markdown",
)
console = Console()

AppRootOption = Annotated[
    Path | None,
    typer.Option(
        "--app-root",
        "-r",
        file_okay=False,
        dir_okay=True,
        help="Directory holding main.js, preload.js, package.json and app/.",
    ),
]


def _settings(app_root: Path | None, port: int | None = None) -> Settings:
    """Helper: Overlay CLI flags on the cached env settings."""
    updates: dict[str, object] = {}
    if app_root is not None:
        updates["app_root"] = app_root.resolve()
    if port is not None:
        updates["port"] = port
    base = load_settings()
    return base.model_copy(update=updates) if updates else base


@app.command()  # type: ignore[misc]
def serve(
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Listening port (default 9876)."),
    ] = None,
    app_root: AppRootOption = None,
) -> None:
    """Run the gateway until interrupted."""
    server = GatewayServer(_settings(app_root, port))
    try:
        server.start()
    except RuntimeError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(
        Panel.fit(
            f"[bold cyan]MIND Gateway[/bold cyan]\nServing: [u]{server.url}[/u]\n"
            f"Proxy: {server.settings.proxy_prefix} → {server.settings.upstream_url}",
            border_style="cyan",
        )
    )
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()


@app.command()  # type: ignore[misc]
def backup(app_root: AppRootOption = None) -> None:
    """Snapshot the shell source files."""
    server = GatewayServer(_settings(app_root))
    response = asyncio.run(server.backup_source_files())

    if not response.success:
        console.print(f"[bold red]❌ Backup failed:[/bold red] {response.error}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"Saved to: [link=file://{response.path}]{response.path}[/link]",
            title="Backup",
            border_style="green",
        )
    )


@app.command()  # type: ignore[misc]
def latest(app_root: AppRootOption = None) -> None:
    """Show the most recent snapshot and its files."""
    server = GatewayServer(_settings(app_root))
    response = asyncio.run(server.get_latest_backup())

    if not response.success:
        console.print(f"[bold red]❌ {response.error}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title=str(response.path), show_header=True, header_style="bold")
    table.add_column("File")
    for name in response.files or []:
        table.add_row(name)
    console.print(table)


if __name__ == "__main__":
    app()
