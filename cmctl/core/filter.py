"""Declarative host selection criteria."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cmctl.core.errors import ValidationError

__all__ = ["Filter", "FilterMode", "create_filter", "validate_filter"]

ROLES_NEED_ONE_SERVICE = "use exactly 1 service filter with roles filter"


class FilterMode(str, Enum):
    """Which selector drives topology traversal, in priority order."""

    TARGET_SERVER = "server"
    BY_HOSTS = "hosts"
    BY_CLUSTERS = "clusters"
    BY_ROLES = "roles"
    BY_SERVICES = "services"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class Filter:
    """Selection criterion over managed hosts.

    Every field may be combined with the others, but only one of them picks
    the resolution path; see :attr:`mode`.
    """

    hosts: tuple[str, ...] = ()
    clusters: tuple[str, ...] = ()
    services: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()
    server: bool = False

    @property
    def mode(self) -> FilterMode:
        """Return the active selection mode derived from populated fields."""

        if self.server:
            return FilterMode.TARGET_SERVER
        if self.hosts:
            return FilterMode.BY_HOSTS
        if self.clusters:
            return FilterMode.BY_CLUSTERS
        if self.roles:
            return FilterMode.BY_ROLES
        if self.services:
            return FilterMode.BY_SERVICES
        return FilterMode.ALL


def _split(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(","))


def create_filter(
    clusters: str | None = None,
    services: str | None = None,
    roles: str | None = None,
    hosts: str | None = None,
    server: bool = False,
) -> Filter:
    """Build a filter from comma-separated option strings."""

    return Filter(
        hosts=_split(hosts),
        clusters=_split(clusters),
        services=_split(services),
        roles=_split(roles),
        server=server,
    )


def validate_filter(host_filter: Filter) -> None:
    """Reject filters whose roles cannot be tied to a single service."""

    if host_filter.roles and len(host_filter.services) != 1:
        raise ValidationError(ROLES_NEED_ONE_SERVICE)
