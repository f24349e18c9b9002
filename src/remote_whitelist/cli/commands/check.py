"""One-shot commands: fetch-and-check a whitelist, or parse a local file."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from remote_whitelist.cli.helpers import console, entries_table
from remote_whitelist.sync.config import WhitelistConfig
from remote_whitelist.sync.decision import is_member
from remote_whitelist.sync.errors import ConfigurationError, FetchError
from remote_whitelist.sync.fetcher import DEFAULT_TIMEOUT_SECONDS, Fetcher, is_trusted_host
from remote_whitelist.sync.parser import parse_whitelist


def check(
    url: Optional[str] = typer.Argument(None, help="Whitelist URL (defaults to the configured URL)"),
    identity: Optional[str] = typer.Option(None, "--identity", "-i", help="Name to check for membership"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT_SECONDS, "--timeout", help="Request timeout in seconds"),
    show_entries: bool = typer.Option(True, "--entries/--no-entries", help="Print the parsed entries"),
) -> None:
    """Download a whitelist once and report whether a name is on it."""
    source = url or WhitelistConfig().get_url()

    if source and not is_trusted_host(source):
        console.print(f"[yellow]⚠️  Not a known raw-text host: {source}[/yellow]")

    try:
        result = asyncio.run(Fetcher(timeout=timeout).fetch(source))
    except ConfigurationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        console.print("   Pass a URL or run 'remote-whitelist config set-url <url>'.")
        raise typer.Exit(1)
    except FetchError as exc:
        console.print(f"[red]Failed to download whitelist:[/red] {exc}")
        raise typer.Exit(1)

    entries = parse_whitelist(result.body)
    if show_entries:
        console.print(entries_table(entries, identity))
    console.print(f"Parsed {len(entries)} valid names from whitelist.")

    if identity is not None:
        if is_member(entries, identity):
            console.print(f"✅ '{identity}' is whitelisted")
        else:
            console.print(f"❌ '{identity}' is not whitelisted")
            raise typer.Exit(2)


def parse(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Whitelist text file"),
    identity: Optional[str] = typer.Option(None, "--identity", "-i", help="Name to check for membership"),
) -> None:
    """Parse a local whitelist file and print its entries."""
    raw = path.read_text(encoding="utf-8", errors="replace")
    entries = parse_whitelist(raw)
    console.print(entries_table(entries, identity))
    if identity is not None:
        status = "whitelisted" if is_member(entries, identity) else "not whitelisted"
        console.print(f"'{identity}' is {status}")
