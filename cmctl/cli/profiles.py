"""CLI commands for managing SSH connection profiles."""

from __future__ import annotations

from pathlib import Path

import typer

from cmctl.cli._shared import handle_error, print_table, show_help_if_no_subcommand
from cmctl.core.errors import CmctlError
from cmctl.registry import DEFAULT_SSH_PORT, ConnectionProfile, RegistryStore

DEFAULT_SSH_USER = "cloudbreak"

profiles_app = typer.Typer(help="Connection profiles related commands")


@profiles_app.callback(invoke_without_command=True)
def profiles_root(ctx: typer.Context) -> None:
    """Display contextual help when no profile subcommand is chosen."""

    show_help_if_no_subcommand(ctx)


@profiles_app.command("create")
def create_profile(
    name: str | None = typer.Option(None, "--name", help="Name of the connection profile."),
    key_path: str | None = typer.Option(None, "--key-path", help="Path of the SSH private key."),
    port: int | None = typer.Option(None, "--port", help="SSH port."),
    username: str | None = typer.Option(None, "--username", help="SSH user name."),
) -> None:
    """Create new connection profile."""

    store = RegistryStore()
    profile_name = name if name is not None else typer.prompt("Enter connection profile name")
    key = key_path
    if key is None:
        key = typer.prompt("Enter ssh key path", default="", show_default=False)
    if key:
        resolved = Path(key).expanduser()
        if not resolved.exists():
            typer.echo(f"SSH key does not exist: {resolved}", err=True)
            raise typer.Exit(1)
        key = str(resolved)
    ssh_port = port if port is not None else typer.prompt(
        "Enter ssh port", default=DEFAULT_SSH_PORT, type=int
    )
    user = username if username is not None else typer.prompt(
        "Enter ssh username", default=DEFAULT_SSH_USER
    )

    try:
        store.add_profile(
            ConnectionProfile(name=profile_name, key_path=key, port=ssh_port, username=user)
        )
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"New connection profile entry has been created: {profile_name}")


@profiles_app.command("list")
def list_profiles() -> None:
    """Print all connection profile entries."""

    rows = [
        [profile.name, profile.key_path, str(profile.port), profile.username]
        for profile in RegistryStore().list_profiles()
    ]
    print_table("CONNECTION PROFILES:", ("NAME", "KEY", "PORT", "USERNAME"), rows)


profiles_app.command("ls", hidden=True)(list_profiles)


@profiles_app.command("delete")
def delete_profile(
    name: str = typer.Argument(..., metavar="NAME", help="Connection profile name."),
) -> None:
    """Delete a connection profile entry by id."""

    try:
        RegistryStore().remove_profile(name)
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"Connection profile '{name}' has been deleted successfully")


@profiles_app.command("clear")
def clear_profiles() -> None:
    """Delete all connection profile entries."""

    RegistryStore().clear_profiles()
    typer.echo("All connection profile records has been dropped")
