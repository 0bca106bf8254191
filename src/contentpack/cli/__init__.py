"""
ContentPack CLI.

Command groups live in their own modules and register themselves
on the main group.

Entry point: contentpack.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="contentpack")
@click.option("--verbose", "-v", is_flag=True, help="Log sync progress to stderr.")
def main(verbose):
    """ContentPack -- verified content-pack sync for a local asset cache."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")


from .sync_cmd import register_sync_commands
from .cache_cmd import register_cache_commands

register_sync_commands(main)
register_cache_commands(main)
