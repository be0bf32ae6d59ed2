"""Topology records returned by the cluster-manager REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "Cluster",
    "Deployment",
    "DeploymentCluster",
    "DeploymentService",
    "Host",
    "RoleAssignment",
    "Service",
    "User",
    "parse_items",
]


def parse_items(payload: Any) -> list[dict[str, Any]]:
    """Return the ``items`` list of a collection response."""

    if not isinstance(payload, dict):
        msg = "collection response must be a JSON object"
        raise ValueError(msg)
    items = payload.get("items", [])
    if not isinstance(items, list):
        msg = "collection response 'items' must be a list"
        raise ValueError(msg)
    return [item for item in items if isinstance(item, dict)]


def _cluster_ref(payload: dict[str, Any]) -> str | None:
    ref = payload.get("clusterRef")
    if isinstance(ref, dict):
        name = ref.get("clusterName")
        if isinstance(name, str) and name:
            return name
    return None


@dataclass(frozen=True, slots=True)
class Host:
    """A managed host with its logical name and network address."""

    hostname: str
    ip_address: str
    host_id: str = ""
    cluster_name: str | None = None
    rack_id: str | None = None

    def __post_init__(self) -> None:
        if not self.hostname:
            msg = "host name must not be empty"
            raise ValueError(msg)
        if not self.ip_address:
            msg = "host address must not be empty"
            raise ValueError(msg)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Host:
        """Build a host from an API item."""

        hostname = payload.get("hostname")
        ip_address = payload.get("ipAddress")
        if not isinstance(hostname, str) or not isinstance(ip_address, str):
            msg = "host payload missing hostname/ipAddress"
            raise ValueError(msg)
        host_id = payload.get("hostId")
        rack_id = payload.get("rackId")
        return cls(
            hostname=hostname,
            ip_address=ip_address,
            host_id=host_id if isinstance(host_id, str) else "",
            cluster_name=_cluster_ref(payload),
            rack_id=rack_id if isinstance(rack_id, str) else None,
        )


@dataclass(frozen=True, slots=True)
class Cluster:
    """A named grouping of hosts."""

    name: str
    display_name: str | None = None
    version: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Cluster:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "cluster payload missing name"
            raise ValueError(msg)
        return cls(
            name=name,
            display_name=payload.get("displayName"),
            version=payload.get("fullVersion"),
        )


@dataclass(frozen=True, slots=True)
class Service:
    """A service deployed on one cluster."""

    name: str
    service_type: str
    cluster_name: str
    state: str | None = None
    health: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], cluster: str) -> Service:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "service payload missing name"
            raise ValueError(msg)
        service_type = payload.get("type")
        return cls(
            name=name,
            service_type=service_type if isinstance(service_type, str) else name,
            cluster_name=cluster,
            state=payload.get("serviceState"),
            health=payload.get("healthSummary"),
        )


@dataclass(frozen=True, slots=True)
class User:
    """A controller user account."""

    name: str
    roles: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> User:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "user payload missing name"
            raise ValueError(msg)
        roles: list[str] = []
        raw_roles = payload.get("authRoles", [])
        if isinstance(raw_roles, list):
            for item in raw_roles:
                if isinstance(item, dict) and isinstance(item.get("name"), str):
                    roles.append(item["name"])
        return cls(name=name, roles=tuple(roles))


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """A role instance placed on a single host."""

    name: str
    role_type: str
    host_id: str
    hostname: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RoleAssignment:
        host_ref = payload.get("hostRef")
        if not isinstance(host_ref, dict):
            msg = "role payload missing hostRef"
            raise ValueError(msg)
        host_id = host_ref.get("hostId")
        hostname = host_ref.get("hostname")
        if not isinstance(host_id, str) or not host_id:
            if not isinstance(hostname, str) or not hostname:
                msg = "role hostRef must carry hostId or hostname"
                raise ValueError(msg)
            host_id = hostname
        name = payload.get("name")
        role_type = payload.get("type")
        if not isinstance(role_type, str) or not role_type:
            msg = "role payload missing type"
            raise ValueError(msg)
        return cls(
            name=name if isinstance(name, str) else role_type,
            role_type=role_type,
            host_id=host_id,
            hostname=hostname if isinstance(hostname, str) and hostname else None,
        )


@dataclass(frozen=True, slots=True)
class DeploymentService:
    """A service within the deployment tree and its role placements."""

    name: str
    service_type: str
    roles: tuple[RoleAssignment, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DeploymentService:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "deployment service missing name"
            raise ValueError(msg)
        service_type = payload.get("type")
        return cls(
            name=name,
            service_type=service_type if isinstance(service_type, str) and service_type else name,
            roles=tuple(RoleAssignment.from_payload(item) for item in _dict_list(payload, "roles")),
        )


@dataclass(frozen=True, slots=True)
class DeploymentCluster:
    """A cluster within the deployment tree."""

    name: str
    services: tuple[DeploymentService, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DeploymentCluster:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "deployment cluster missing name"
            raise ValueError(msg)
        return cls(
            name=name,
            services=tuple(
                DeploymentService.from_payload(item) for item in _dict_list(payload, "services")
            ),
        )


@dataclass(frozen=True, slots=True)
class Deployment:
    """The full clusters -> services -> roles -> hosts tree."""

    clusters: tuple[DeploymentCluster, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Any) -> Deployment:
        if not isinstance(payload, dict):
            msg = "deployment response must be a JSON object"
            raise ValueError(msg)
        return cls(
            clusters=tuple(
                DeploymentCluster.from_payload(item) for item in _dict_list(payload, "clusters")
            )
        )


def _dict_list(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    raw = payload.get(key, [])
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]
