"""Shared CLI helpers."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich when verbose output is requested."""
    root = logging.getLogger("remote_whitelist")
    if not verbose:
        root.setLevel(logging.WARNING)
        return
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=console, show_path=False, markup=False))
    root.setLevel(logging.DEBUG)


def entries_table(entries: tuple[str, ...], identity: str | None = None) -> Table:
    """Render whitelist entries, highlighting the ones matching ``identity``."""
    table = Table(title=f"Whitelist ({len(entries)} entries)", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Entry")
    for index, entry in enumerate(entries, start=1):
        style = "bold green" if identity is not None and entry == identity else None
        table.add_row(str(index), entry, style=style)
    return table
