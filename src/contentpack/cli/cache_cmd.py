"""Local cache commands: links, ls, show, clear."""

from __future__ import annotations

import sys
from typing import Optional

import click
from rich.table import Table

from ..engine import clear_local_content
from ..errors import CacheIOError
from ..preview import list_images, list_tables, read_text
from ._common import HOME_DEFAULT, console, open_local


def register_cache_commands(main: click.Group) -> None:
    """Register the offline cache commands."""

    @main.command("links")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    def links(home: str):
        """List the custom links stored by the last sync."""
        _, _, _, state = open_local(home)
        stored = state.stored_links
        if not stored:
            console.print("[dim]No links stored.[/]")
            return
        for link in stored:
            console.print(f"  {link}")

    @main.command("ls")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    def ls(home: str):
        """List cached assets."""
        _, _, cache, _ = open_local(home)
        tables = set(list_tables(cache))
        names = cache.list()
        if not names:
            console.print("[dim]Cache is empty.[/]")
            return

        table = Table(title=f"Cache: {cache.namespace}")
        table.add_column("File", style="cyan")
        table.add_column("Kind")
        table.add_column("Bytes", justify="right")
        for name in names:
            kind = "table" if name in tables else "image"
            table.add_row(name, kind, str(cache.path_for(name).stat().st_size))
        console.print(table)
        console.print(f"[dim]{len(list_images(cache))} image(s), {len(tables)} table(s)[/]")

    @main.command("show")
    @click.argument("filename")
    @click.option("--max-bytes", type=int, default=None, help="Preview size cap.")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    def show(filename: str, max_bytes: Optional[int], home: str):
        """Print a bounded text preview of a cached file."""
        _, config, cache, _ = open_local(home)
        limit = config.preview_max_bytes if max_bytes is None else max_bytes
        try:
            text = read_text(cache, filename, limit)
        except (CacheIOError, ValueError) as exc:
            console.print(f"[red]Failed to read {filename}:[/] {exc}")
            sys.exit(1)
        click.echo(text)

    @main.command("clear")
    @click.option("--home", default=HOME_DEFAULT, type=click.Path())
    @click.confirmation_option(prompt="Remove all cached assets and stored links?")
    def clear(home: str):
        """Remove cached assets and stored links."""
        _, _, cache, state = open_local(home)
        try:
            clear_local_content(cache, state)
        except CacheIOError as exc:
            console.print(f"[red]Cache clear failed:[/] {exc}")
            sys.exit(1)
        console.print("[green]Cache and links cleared.[/]")
