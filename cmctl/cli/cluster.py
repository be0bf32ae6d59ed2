"""Commands that query or act on the active CM server's clusters."""

from __future__ import annotations

import typer

from cmctl.cli._shared import active_client, handle_error, print_table, server_profile
from cmctl.config import ConfigStore
from cmctl.core.errors import CmctlError
from cmctl.core.filter import Filter, create_filter, validate_filter
from cmctl.core.interfaces import CommandRunner, TopologyFetcher
from cmctl.core.models import Deployment, Host
from cmctl.core.resolver import HostResolver
from cmctl.registry import RegistryStore
from cmctl.ssh import SSHRunner, run_interactive

HOSTS_OPTION = typer.Option(None, "--hosts", help="Comma-separated host names.")
CLUSTERS_OPTION = typer.Option(None, "--clusters", help="Comma-separated cluster names.")
SERVICES_OPTION = typer.Option(None, "--services", help="Comma-separated service types.")
ROLES_OPTION = typer.Option(
    None, "--roles", help="Comma-separated role types (needs exactly one service)."
)
SERVER_OPTION = typer.Option(False, "--server", help="Target the CM server host only.")


def _build_filter(
    hosts: str | None,
    clusters: str | None,
    services: str | None,
    roles: str | None,
    server: bool,
) -> Filter:
    host_filter = create_filter(
        clusters=clusters,
        services=services,
        roles=roles,
        hosts=hosts,
        server=server,
    )
    validate_filter(host_filter)
    return host_filter


class _FetchedHosts:
    """Serve an already fetched host list alongside the client's deployment."""

    def __init__(self, client: TopologyFetcher, hosts: list[Host]) -> None:
        self._client = client
        self._hosts = hosts

    def fetch_hosts(self) -> list[Host]:
        return self._hosts

    def fetch_deployment(self) -> Deployment:
        return self._client.fetch_deployment()


def _resolve(host_filter: Filter) -> list[str]:
    client = active_client()
    resolver = HostResolver(client, client.server.hostname)
    return sorted(resolver.resolve(host_filter))


def list_clusters() -> None:
    """Print the clusters managed by the active CM server."""

    try:
        clusters = active_client().list_clusters()
    except CmctlError as exc:
        handle_error(exc)
    rows = [[item.name, item.display_name or "", item.version or ""] for item in clusters]
    print_table("CLUSTERS:", ("NAME", "DISPLAY NAME", "VERSION"), rows)


def list_services(
    cluster: str | None = typer.Argument(
        None,
        metavar="[CLUSTER]",
        help="Cluster name (defaults to the cluster of the active entry).",
    ),
) -> None:
    """Print the services of a cluster."""

    try:
        client = active_client()
        target = cluster or client.server.cluster
        if not target:
            typer.echo("Provide a cluster name argument or set one on the CM entry.", err=True)
            raise typer.Exit(2)
        services = client.list_services(target)
    except CmctlError as exc:
        handle_error(exc)
    rows = [
        [item.name, item.service_type, item.cluster_name, item.state or "", item.health or ""]
        for item in services
    ]
    print_table("SERVICES:", ("NAME", "TYPE", "CLUSTER", "STATE", "HEALTH"), rows)


def list_users() -> None:
    """Print the user accounts of the active CM server."""

    try:
        users = active_client().list_users()
    except CmctlError as exc:
        handle_error(exc)
    rows = [[user.name, ",".join(user.roles)] for user in users]
    print_table("USERS:", ("NAME", "ROLES"), rows)


def export_template(
    cluster: str = typer.Argument(..., metavar="CLUSTER", help="Cluster to export."),
) -> None:
    """Print the cluster template of a cluster."""

    try:
        template = active_client().export_cluster_template(cluster)
    except CmctlError as exc:
        handle_error(exc)
    typer.echo(template)


def list_hosts(
    hosts: str | None = HOSTS_OPTION,
    clusters: str | None = CLUSTERS_OPTION,
    services: str | None = SERVICES_OPTION,
    roles: str | None = ROLES_OPTION,
    server: bool = SERVER_OPTION,
) -> None:
    """Print the hosts selected by the filter options (all hosts by default)."""

    try:
        host_filter = _build_filter(hosts, clusters, services, roles, server)
        client = active_client()
        records = client.list_hosts()
        controller = client.server.hostname
        addresses = HostResolver(_FetchedHosts(client, records), controller).resolve(host_filter)
    except CmctlError as exc:
        handle_error(exc)
    if host_filter.server:
        selected = [host for host in records if controller in (host.hostname, host.ip_address)]
    else:
        selected = [host for host in records if host.ip_address in addresses]
    rows = [
        [host.hostname, host.ip_address, host.cluster_name or "", host.rack_id or ""]
        for host in selected
    ]
    # controller not registered as a managed host
    if host_filter.server and not rows:
        rows = [[controller, "", "", ""]]
    print_table("HOSTS:", ("HOSTNAME", "IP", "CLUSTER", "RACK"), rows)


def resolve_hosts(
    hosts: str | None = HOSTS_OPTION,
    clusters: str | None = CLUSTERS_OPTION,
    services: str | None = SERVICES_OPTION,
    roles: str | None = ROLES_OPTION,
    server: bool = SERVER_OPTION,
) -> None:
    """Print the addresses selected by the filter options."""

    try:
        addresses = _resolve(_build_filter(hosts, clusters, services, roles, server))
    except CmctlError as exc:
        handle_error(exc)
    for address in addresses:
        typer.echo(address)


def run_command(
    command: str = typer.Argument(..., metavar="COMMAND", help="Shell command to execute."),
    hosts: str | None = HOSTS_OPTION,
    clusters: str | None = CLUSTERS_OPTION,
    services: str | None = SERVICES_OPTION,
    roles: str | None = ROLES_OPTION,
    server: bool = SERVER_OPTION,
) -> None:
    """Run a shell command on every host selected by the filter options."""

    store = RegistryStore()
    try:
        addresses = _resolve(_build_filter(hosts, clusters, services, roles, server))
        profile = server_profile(store, store.get_active())
    except CmctlError as exc:
        handle_error(exc)

    runner: CommandRunner = SSHRunner(profile, timeout=ConfigStore().load().ssh_timeout)
    failures = 0
    for address in addresses:
        try:
            result = runner.run(address, command)
        except CmctlError as exc:
            failures += 1
            typer.echo(f"[{address}] {exc}", err=True)
            continue
        typer.echo(f"[{address}] exit code: {result.exit_code}")
        if result.stdout:
            typer.echo(result.stdout.rstrip("\n"))
        if result.stderr:
            typer.echo(result.stderr.rstrip("\n"), err=True)
        if result.exit_code != 0:
            failures += 1
    if failures:
        raise typer.Exit(1)


def open_session(
    hosts: str | None = HOSTS_OPTION,
    clusters: str | None = CLUSTERS_OPTION,
    services: str | None = SERVICES_OPTION,
    roles: str | None = ROLES_OPTION,
    server: bool = SERVER_OPTION,
) -> None:
    """Open an interactive SSH session to the first selected host."""

    store = RegistryStore()
    try:
        addresses = _resolve(_build_filter(hosts, clusters, services, roles, server))
        if not addresses:
            typer.echo("No hosts matched the filter.", err=True)
            raise typer.Exit(1)
        profile = server_profile(store, store.get_active())
        exit_code = run_interactive(addresses[0], profile)
    except CmctlError as exc:
        handle_error(exc)
    raise typer.Exit(exit_code)


def register_cluster_commands(app: typer.Typer) -> None:
    """Attach the cluster commands to the top-level application."""

    app.command("clusters")(list_clusters)
    app.command("services")(list_services)
    app.command("users")(list_users)
    app.command("export")(export_template)
    app.command("hosts")(list_hosts)
    app.command("resolve")(resolve_hosts)
    app.command("run")(run_command)
    app.command("ssh")(open_session)
