"""Sync commands: sync, status."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel

from ..config import load_config, resolve_home
from ..errors import ContentPackError, TriggerError
from ..trigger import parse_trigger, status_text, sync_container
from ._common import HOME_DEFAULT, console, open_local


def register_sync_commands(main: click.Group) -> None:
    """Register sync and status."""

    @main.command("sync")
    @click.argument("trigger", required=False)
    @click.option("--container", help="Registry container (instead of TRIGGER).")
    @click.option("--record", help="Bootstrap record id (instead of TRIGGER).")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    def sync(trigger: Optional[str], container: Optional[str], record: Optional[str], home: str):
        """Sync the local cache from a bootstrap TRIGGER URL.

        Either pass contentpack://bootstrap?container=C&record=R or
        use --container and --record.
        """
        home_path = resolve_home(Path(home))
        config = load_config(home_path)

        if trigger:
            try:
                parsed = parse_trigger(trigger, config.trigger_scheme)
            except TriggerError as exc:
                console.print(f"[yellow]{exc}[/]")
                sys.exit(1)
            container, record = parsed.container, parsed.record
        elif not (container and record):
            console.print("[yellow]Give a TRIGGER or both --container and --record.[/]")
            sys.exit(1)

        console.print(f"\n  Fetching bootstrap [cyan]{record}[/] from [cyan]{container}[/]...", end=" ")
        try:
            engine, changed = sync_container(container, record, home_path, config)
        except ContentPackError as exc:
            console.print("[red]failed[/]")
            console.print(f"  [bold red]Sync failed:[/] {exc}\n")
            sys.exit(1)

        console.print("[green]done[/]")
        console.print(f"  {status_text(engine, changed)}")
        report = engine.last_report
        if changed and report is not None:
            for name in report.files_written:
                console.print(f"    [dim]{name}[/]")
        console.print(f"  Links: {len(engine.latest_links)}\n")

    @main.command("status")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    def status(home: str):
        """Show committed version, links and cached files."""
        _, config, cache, state = open_local(home)
        snapshot = state.get()
        files = cache.list()

        console.print()
        console.print(
            Panel(
                f"Version: [bold]{snapshot.current_version}[/]\n"
                f"Links: [bold]{len(state.stored_links)}[/]\n"
                f"Files: [bold]{len(files)}[/]\n"
                f"Cache: [dim]{cache.base}[/]\n"
                f"Last Sync: {snapshot.last_sync or '[dim]never[/]'}\n"
                f"Last Error: {snapshot.last_error or '[dim]none[/]'}",
                title="ContentPack",
                border_style="cyan",
            )
        )
        console.print()
