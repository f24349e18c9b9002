"""``remote-whitelist simulate``: run a whitelist session in-process."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.table import Table

from remote_whitelist.cli.helpers import console
from remote_whitelist.sync.config import WhitelistConfig
from remote_whitelist.sync.fetcher import DEFAULT_TIMEOUT_SECONDS, Fetcher
from remote_whitelist.sync.participant import WhitelistParticipant
from remote_whitelist.sync.runtime import DEFAULT_TICK_SECONDS, WhitelistRuntime
from remote_whitelist.sync.session import LocalSession
from remote_whitelist.sync.sink import RecordingVisibilitySink


def _parse_late_join(value: str) -> tuple[str, float]:
    name, sep, at = value.rpartition("@")
    if not sep or not name:
        raise typer.BadParameter(f"Expected NAME@SECONDS, got '{value}'")
    try:
        return name, float(at)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid seconds in '{value}'") from exc


def simulate(
    participants: list[str] = typer.Option(
        ..., "--participant", "-p", help="Participant name; the first one is coordinator"
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Whitelist URL (defaults to the configured URL)"),
    duration: float = typer.Option(5.0, "--duration", "-d", help="Seconds to run"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Refresh interval in seconds"),
    late_join: list[str] = typer.Option(
        [], "--late-join", help="Join NAME at SECONDS into the run (NAME@SECONDS)"
    ),
    leave_coordinator_after: Optional[float] = typer.Option(
        None, "--leave-coordinator-after", help="Remove the coordinator after this many seconds"
    ),
    tick: float = typer.Option(DEFAULT_TICK_SECONDS, "--tick", help="Tick length in seconds"),
) -> None:
    """Run participants against a local session and print visibility changes."""
    config = WhitelistConfig()
    source = url or config.get_url()
    refresh_interval = interval if interval is not None else config.get_refresh_interval()
    target = config.get_target()
    late_joiners = [_parse_late_join(value) for value in late_join]

    session = LocalSession()
    runtime = WhitelistRuntime(session=session, tick_seconds=tick)
    fetcher = Fetcher(timeout=DEFAULT_TIMEOUT_SECONDS)
    by_name: dict[str, WhitelistParticipant] = {}

    def make(name: str) -> WhitelistParticipant:
        def report(container: str, visible: bool) -> None:
            state = "[green]visible[/green]" if visible else "[red]hidden[/red]"
            console.print(f"[dim]{runtime.elapsed:6.2f}s[/dim] {name}: '{container}' {state}")

        participant = WhitelistParticipant(
            session=session.join(name),
            target=target,
            url=source,
            fetcher=fetcher,
            sink=RecordingVisibilitySink(on_change=report),
            refresh_interval=refresh_interval,
        )
        by_name[name] = participant
        return participant

    for name in participants:
        runtime.add(make(name))

    for name, at in late_joiners:
        runtime.call_at(at, lambda name=name: runtime.add(make(name)))

    if leave_coordinator_after is not None:
        def leave() -> None:
            coordinator = session.coordinator
            if coordinator is None:
                return
            console.print(f"[dim]{runtime.elapsed:6.2f}s[/dim] {coordinator.participant_id} left the session")
            runtime.remove(by_name.pop(coordinator.participant_id))
            session.leave(coordinator)

        runtime.call_at(leave_coordinator_after, leave)

    asyncio.run(runtime.run(duration=duration))

    table = Table(title="Final state", show_header=True, header_style="bold")
    table.add_column("Participant", style="cyan")
    table.add_column("Coordinator")
    table.add_column("Names loaded", justify="right")
    table.add_column("Whitelisted")
    for name, participant in by_name.items():
        table.add_row(
            name,
            "yes" if participant.session.is_coordinator() else "",
            str(participant.state.loaded_name_count),
            "✅" if participant.is_whitelisted else "❌",
        )
    console.print(table)
