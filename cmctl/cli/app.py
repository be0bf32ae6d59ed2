"""Command-line entry point for cmctl."""

from __future__ import annotations

import sys
from collections.abc import Sequence

import typer

from cmctl import __version__
from cmctl.cli._shared import handle_error, print_table, show_help_if_no_subcommand
from cmctl.cli.cluster import register_cluster_commands
from cmctl.cli.config import config_app
from cmctl.cli.profiles import profiles_app
from cmctl.core.errors import CmctlError
from cmctl.log import setup_logging
from cmctl.registry import DEFAULT_CM_PORT, PROTOCOLS, RegistryStore, ServerEntry

app = typer.Typer(help="CLI tool for handle CM clusters")
app.add_typer(profiles_app, name="profiles", help="Connection profiles related commands")
app.add_typer(config_app, name="config", help="Inspect and adjust configuration")
register_cluster_commands(app)

SERVER_HEADERS = (
    "NAME",
    "HOSTNAME",
    "PORT",
    "PROTOCOL",
    "USER",
    "PASSWORD",
    "CLUSTER",
    "PROFILE",
    "GATEWAY",
    "ACTIVE",
)


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show the application's version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Write debug logs to stderr.",
    ),
) -> None:
    """Handle top-level options for the CLI."""
    if version:
        typer.echo(__version__)
        raise typer.Exit()

    setup_logging(verbose)
    show_help_if_no_subcommand(ctx)


def _prompt_value(value: str | None, default: str, prompt_text: str) -> str:
    """Use the option value when given, otherwise ask for it."""

    if value is not None:
        return value
    if default:
        return typer.prompt(prompt_text, default=default)
    return typer.prompt(prompt_text)


def _server_row(entry: ServerEntry) -> list[str]:
    return [
        entry.name,
        entry.hostname,
        str(entry.port),
        entry.protocol,
        entry.username,
        "********",
        entry.cluster,
        entry.connection_profile,
        str(entry.use_gateway).lower(),
        str(entry.active).lower(),
    ]


@app.command("init")
def init_registry() -> None:
    """Initialize CM server database."""

    RegistryStore().initialize()
    typer.echo("CM registry DB has been initialized.")


@app.command("create")
def create_server(
    name: str | None = typer.Option(None, "--name", help="Name of the CM server entry."),
    host: str | None = typer.Option(None, "--host", help="Hostname of the CM server."),
    port: int | None = typer.Option(None, "--port", help="Port for CM server."),
    protocol: str | None = typer.Option(
        None, "--protocol", help="Protocol for CM REST API: http/https."
    ),
    username: str | None = typer.Option(None, "--username", help="User name for CM server."),
    password: str | None = typer.Option(None, "--password", help="Password for CM user."),
    cluster: str | None = typer.Option(None, "--cluster", help="Cluster name."),
    gateway: bool = typer.Option(
        False,
        "--gateway",
        help="Reach the REST API through an SSH session on the CM host.",
    ),
) -> None:
    """Register new CM server entry."""

    store = RegistryStore()
    entry_name = _prompt_value(name, "", "Enter CM server name")
    if store.has_server(entry_name):
        typer.echo(f"CM server entry already exists with id {entry_name}", err=True)
        raise typer.Exit(1)
    hostname = _prompt_value(host, "", "Enter CM host name")
    entry_port = port if port is not None else typer.prompt(
        "Enter CM port", default=DEFAULT_CM_PORT, type=int
    )
    entry_protocol = _prompt_value(protocol, "http", "Enter CM protocol").lower()
    if entry_protocol not in PROTOCOLS:
        typer.echo("Use 'http' or 'https' value for protocol option", err=True)
        raise typer.Exit(2)
    entry_username = _prompt_value(username, "admin", "Enter CM user")
    entry_password = password
    if entry_password is None:
        entry_password = typer.prompt("Enter CM user password", hide_input=True)
    entry_cluster = cluster
    if entry_cluster is None:
        entry_cluster = typer.prompt("Enter CM cluster", default="", show_default=False)

    try:
        entry = ServerEntry(
            name=entry_name,
            hostname=hostname,
            port=entry_port,
            protocol=entry_protocol,
            username=entry_username,
            password=entry_password,
            cluster=entry_cluster,
            use_gateway=gateway,
        )
        store.register(entry)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"New CM server entry has been created: {entry_name}")


@app.command("list")
def list_servers() -> None:
    """Print all registered CM servers."""

    entries = RegistryStore().list_servers()
    print_table("CM SERVERS:", SERVER_HEADERS, [_server_row(entry) for entry in entries])


app.command("ls", hidden=True)(list_servers)


@app.command("show")
def show_active() -> None:
    """Show active CM server details."""

    try:
        rows = [_server_row(RegistryStore().get_active())]
    except CmctlError:
        rows = []
    print_table("ACTIVE CM SERVER:", SERVER_HEADERS, rows)


@app.command("delete")
def delete_server(
    name: str = typer.Argument(..., metavar="NAME", help="Name of the CM registry entry."),
) -> None:
    """De-register an existing CM server entry."""

    try:
        RegistryStore().deregister(name)
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"CM registry de-registered with id: {name}")


@app.command("use")
def use_server(
    name: str = typer.Argument(..., metavar="NAME", help="Name of the CM registry entry."),
) -> None:
    """Use selected CM server."""

    try:
        RegistryStore().activate(name)
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"CM server entry selected with id: {name}")


@app.command("clear")
def clear_servers() -> None:
    """Drop all CM server records."""

    RegistryStore().clear_servers()
    typer.echo("CM server entries dropped.")


@app.command("attach")
def attach_profile(
    profile: str = typer.Argument(..., metavar="PROFILE", help="Connection profile name."),
    server: str | None = typer.Argument(
        None,
        metavar="[SERVER]",
        help="CM server entry name (defaults to the active one).",
    ),
) -> None:
    """Attach a profile to a CM server entry."""

    store = RegistryStore()
    try:
        target = server if server is not None else store.get_active().name
        entry = store.attach_profile(target, profile)
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(f"Attach profile '{profile}' to '{entry.name}'")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the cmctl CLI."""

    args = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        result = app(args=args, standalone_mode=False)
    except typer.Exit as exc:  # exit path already handled by Typer
        return exc.exit_code
    except typer.Abort:
        typer.echo("Aborted!", err=True)
        return 1
    except Exception as exc:  # pragma: no cover - unexpected errors bubble to the shell
        typer.echo(str(exc), err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - manual execution only
    raise SystemExit(main())
