"""Per-cluster lookup tables derived from the deployment tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cmctl.core.models import Deployment, Host, RoleAssignment

__all__ = ["Inventory", "build_inventories_from_deployment", "build_inventory"]


@dataclass(slots=True)
class Inventory:
    """Host membership and service/role placement for one cluster.

    ``service_hosts`` maps a service type to the names of hosts running any
    of its roles. ``service_role_hosts`` maps a service type to role types
    and from there to host names.
    """

    cluster_name: str
    hosts: list[Host] = field(default_factory=list)
    service_hosts: dict[str, set[str]] = field(default_factory=dict)
    service_role_hosts: dict[str, dict[str, set[str]]] = field(default_factory=dict)

    def host_names(self) -> set[str]:
        """Return the names of hosts that belong to the cluster."""

        return {host.hostname for host in self.hosts}


def build_inventory(cluster: str, hosts: Sequence[Host]) -> Inventory:
    """Return a membership-only inventory for ``cluster``.

    The service and role tables stay empty; use
    :func:`build_inventories_from_deployment` when they are needed.
    """

    members = [host for host in hosts if host.cluster_name == cluster]
    return Inventory(cluster_name=cluster, hosts=members)


def _assigned_hostname(role: RoleAssignment, names_by_id: dict[str, str]) -> str:
    if role.host_id in names_by_id:
        return names_by_id[role.host_id]
    return role.hostname or role.host_id


def build_inventories_from_deployment(
    deployment: Deployment,
    hosts: Sequence[Host],
) -> list[Inventory]:
    """Walk the deployment tree once, producing one full inventory per cluster."""

    names_by_id = {host.host_id: host.hostname for host in hosts if host.host_id}
    inventories: list[Inventory] = []
    for cluster in deployment.clusters:
        inventory = build_inventory(cluster.name, hosts)
        for service in cluster.services:
            service_hosts = inventory.service_hosts.setdefault(service.service_type, set())
            role_hosts = inventory.service_role_hosts.setdefault(service.service_type, {})
            for role in service.roles:
                hostname = _assigned_hostname(role, names_by_id)
                service_hosts.add(hostname)
                role_hosts.setdefault(role.role_type, set()).add(hostname)
        inventories.append(inventory)
    return inventories
