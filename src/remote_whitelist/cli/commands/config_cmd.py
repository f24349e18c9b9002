"""``remote-whitelist config`` commands."""

from __future__ import annotations

import typer
from rich.table import Table

from remote_whitelist.cli.helpers import console
from remote_whitelist.sync.config import URL_ENV_VAR, WhitelistConfig
from remote_whitelist.sync.errors import ConfigurationError
from remote_whitelist.sync.fetcher import is_trusted_host, validate_url

app = typer.Typer(help="Configuration commands")


@app.command()
def show() -> None:
    """Display the resolved configuration."""
    config = WhitelistConfig()
    url = config.get_url()

    table = Table(title="Remote Whitelist Configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("url", url or "[dim]not set[/dim]")
    table.add_row("refresh_interval", f"{config.get_refresh_interval():g}s")
    table.add_row("target", config.get_target())
    table.add_row("config file", str(config.config_file))
    console.print(table)

    if url and not is_trusted_host(url):
        console.print("[yellow]⚠️  URL host is not a known raw-text host.[/yellow]")
    console.print(f"[dim]{URL_ENV_VAR} overrides the stored URL.[/dim]")


@app.command("set-url")
def set_url(url: str = typer.Argument(..., help="Raw text URL of the whitelist")) -> None:
    """Store the whitelist URL."""
    try:
        url = validate_url(url)
    except ConfigurationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    WhitelistConfig().set_url(url)
    console.print(f"✅ Whitelist URL set to: {url}")


@app.command("set-interval")
def set_interval(seconds: float = typer.Argument(..., help="Seconds between automatic refreshes")) -> None:
    """Store the automatic refresh interval."""
    try:
        WhitelistConfig().set_refresh_interval(seconds)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    console.print(f"✅ Refresh interval set to: {seconds:g}s")


@app.command("set-target")
def set_target(name: str = typer.Argument(..., help="Name of the controlled container")) -> None:
    """Store the target container name."""
    if not name.strip():
        console.print("[red]Error:[/red] Target must not be empty")
        raise typer.Exit(1)
    WhitelistConfig().set_target(name.strip())
    console.print(f"✅ Target set to: {name.strip()}")
