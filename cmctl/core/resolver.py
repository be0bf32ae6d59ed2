"""Resolve a host filter into the network addresses to act upon."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from loguru import logger

from cmctl.core.filter import Filter, FilterMode, validate_filter
from cmctl.core.interfaces import TopologyFetcher
from cmctl.core.inventory import Inventory, build_inventories_from_deployment, build_inventory
from cmctl.core.models import Host

__all__ = [
    "HostResolver",
    "cluster_members",
    "role_members",
    "select_addresses",
    "service_members",
]


def cluster_members(clusters: Iterable[str], hosts: Sequence[Host]) -> set[str]:
    """Union the host names of every listed cluster."""

    members: set[str] = set()
    for cluster in clusters:
        members |= build_inventory(cluster, hosts).host_names()
    return members


def _in_scope(inventory: Inventory, clusters: Collection[str]) -> bool:
    return not clusters or inventory.cluster_name in clusters


def role_members(host_filter: Filter, inventories: Iterable[Inventory]) -> set[str]:
    """Union hosts running any of the filter's roles of its single service."""

    service = host_filter.services[0]
    members: set[str] = set()
    for inventory in inventories:
        if not _in_scope(inventory, host_filter.clusters):
            continue
        for role, role_hosts in inventory.service_role_hosts.get(service, {}).items():
            if role in host_filter.roles:
                members |= role_hosts
    return members


def service_members(host_filter: Filter, inventories: Iterable[Inventory]) -> set[str]:
    """Union hosts running any role of the filter's services."""

    members: set[str] = set()
    for inventory in inventories:
        if not _in_scope(inventory, host_filter.clusters):
            continue
        for service, service_hosts in inventory.service_hosts.items():
            if service in host_filter.services:
                members |= service_hosts
    return members


def select_addresses(
    hosts: Iterable[Host],
    host_filter: Filter,
    members: Collection[str],
) -> set[str]:
    """Intersect fetched hosts with the explicit host list and member set.

    An empty member set places no restriction, so every host that survives
    the explicit host list is selected. A member may match either the host
    name or the address.
    """

    selected: set[str] = set()
    for host in hosts:
        if host_filter.hosts and host.hostname not in host_filter.hosts:
            continue
        if members and host.hostname not in members and host.ip_address not in members:
            continue
        selected.add(host.ip_address)
    return selected


class HostResolver:
    """Compute target addresses for a filter against live topology data."""

    def __init__(self, fetcher: TopologyFetcher, controller_address: str) -> None:
        self._fetcher = fetcher
        self._controller_address = controller_address

    def resolve(self, host_filter: Filter) -> set[str]:
        """Return the deduplicated addresses selected by ``host_filter``.

        Validation happens before any fetch. Collections are fetched at most
        once, and only those the active mode needs.
        """

        validate_filter(host_filter)
        mode = host_filter.mode
        logger.debug("Resolving hosts in {} mode", mode.value)
        if mode is FilterMode.TARGET_SERVER:
            return {self._controller_address}

        hosts = self._fetcher.fetch_hosts()
        logger.debug("Fetched {} hosts", len(hosts))
        members: set[str] = set()
        if mode is FilterMode.BY_HOSTS:
            members = set(host_filter.hosts)
        elif mode is FilterMode.BY_CLUSTERS:
            members = cluster_members(host_filter.clusters, hosts)
        elif mode in (FilterMode.BY_ROLES, FilterMode.BY_SERVICES):
            deployment = self._fetcher.fetch_deployment()
            inventories = build_inventories_from_deployment(deployment, hosts)
            logger.debug("Built {} cluster inventories", len(inventories))
            if mode is FilterMode.BY_ROLES:
                members = role_members(host_filter, inventories)
            else:
                members = service_members(host_filter, inventories)

        addresses = select_addresses(hosts, host_filter, members)
        logger.debug("Resolved {} addresses from {} members", len(addresses), len(members))
        return addresses
