"""Configuration-related CLI commands."""

from __future__ import annotations

import json

import typer

from cmctl.cli._shared import show_help_if_no_subcommand
from cmctl.config import AppConfig, ConfigStore

config_app = typer.Typer(help="Manage application configuration")


@config_app.callback(invoke_without_command=True)
def config_root(ctx: typer.Context) -> None:
    """Display contextual help when no subcommand is provided."""

    show_help_if_no_subcommand(ctx)


@config_app.command("show")
def show_config() -> None:
    """Display the current application configuration."""

    store = ConfigStore()
    config = store.load()
    typer.echo(json.dumps(config.to_payload(), indent=2))


@config_app.command("set")
def set_config_value(
    key: str = typer.Argument(..., metavar="KEY", help="Setting name, e.g. api_version."),
    value: str = typer.Argument(..., metavar="VALUE", help="New value for the setting."),
) -> None:
    """Persist a single configuration value."""

    store = ConfigStore()
    config = store.load()
    try:
        config.set_value(key, value)
    except KeyError as exc:
        typer.echo(f"Unknown configuration key: {key}", err=True)
        raise typer.Exit(2) from exc
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc
    store.save(config)
    typer.echo(f"Updated {key}.")


@config_app.command("reset")
def reset_config() -> None:
    """Restore every setting to its default value."""

    ConfigStore().save(AppConfig())
    typer.echo("Configuration reset to defaults.")
