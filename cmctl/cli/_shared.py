"""Shared helpers for Typer-based CLI components."""

from __future__ import annotations

from collections.abc import Sequence
from typing import NoReturn

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from cmctl.client import CMClient
from cmctl.config import ConfigStore
from cmctl.core.errors import CmctlError, ValidationError
from cmctl.registry import ConnectionProfile, RegistryStore, ServerEntry


def show_help_if_no_subcommand(ctx: typer.Context) -> None:
    """Emit contextual help when a subcommand is not provided."""

    if ctx.invoked_subcommand or ctx.resilient_parsing:
        return
    typer.echo(ctx.get_help())
    raise typer.Exit()


def handle_error(exc: CmctlError) -> NoReturn:
    """Render a user-friendly error and exit with appropriate code."""

    message = str(exc) or exc.__class__.__name__
    exit_code = 2 if isinstance(exc, ValidationError) else 1
    logger.debug("Command failed: {}", message)
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(exit_code)


def print_table(title: str, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    """Print a titled table, or a placeholder when there are no rows."""

    typer.echo(title)
    if not rows:
        typer.echo("-" * len(title))
        typer.echo("NO ENTRIES FOUND!")
        return
    table = Table(*headers)
    for row in rows:
        table.add_row(*row)
    Console().print(table)


def server_profile(store: RegistryStore, entry: ServerEntry) -> ConnectionProfile | None:
    """Return the connection profile attached to ``entry``, if any."""

    if not entry.connection_profile:
        return None
    return store.get_profile(entry.connection_profile)


def active_client(store: RegistryStore | None = None) -> CMClient:
    """Build a client for the active server entry."""

    registry = store if store is not None else RegistryStore()
    entry = registry.get_active()
    return CMClient(
        entry,
        config=ConfigStore().load(),
        profile=server_profile(registry, entry),
    )
