"""Local registry of controller servers and SSH connection profiles."""

from __future__ import annotations

import json
import os
from contextlib import suppress
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from loguru import logger

from cmctl.core.errors import RegistryError
from cmctl.paths import data_dir

__all__ = [
    "ConnectionProfile",
    "Registry",
    "RegistryStore",
    "ServerEntry",
    "default_registry_path",
]

_DEFAULT_FILENAME = "registry.json"
DEFAULT_CM_PORT = 7180
DEFAULT_SSH_PORT = 22
PROTOCOLS = ("http", "https")


@dataclass(slots=True)
class ServerEntry:
    """A registered controller server."""

    name: str
    hostname: str
    port: int = DEFAULT_CM_PORT
    protocol: str = "http"
    username: str = "admin"
    password: str = ""
    cluster: str = ""
    connection_profile: str = ""
    use_gateway: bool = False
    active: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            msg = "server name must not be empty"
            raise ValueError(msg)
        if not self.hostname:
            msg = "server hostname must not be empty"
            raise ValueError(msg)
        if self.protocol not in PROTOCOLS:
            msg = "Use 'http' or 'https' value for protocol option"
            raise ValueError(msg)

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.hostname}:{self.port}"

    def to_payload(self) -> dict[str, Any]:
        """Serialize the entry into a JSON-compatible dictionary."""

        return {
            "name": self.name,
            "hostname": self.hostname,
            "port": self.port,
            "protocol": self.protocol,
            "username": self.username,
            "password": self.password,
            "cluster": self.cluster,
            "connection_profile": self.connection_profile,
            "use_gateway": self.use_gateway,
            "active": self.active,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ServerEntry:
        """Reconstruct an entry instance from serialized data."""

        return cls(
            name=str(payload.get("name", "")),
            hostname=str(payload.get("hostname", "")),
            port=int(payload.get("port", DEFAULT_CM_PORT)),
            protocol=str(payload.get("protocol", "http")),
            username=str(payload.get("username", "admin")),
            password=str(payload.get("password", "")),
            cluster=str(payload.get("cluster", "")),
            connection_profile=str(payload.get("connection_profile", "")),
            use_gateway=bool(payload.get("use_gateway", False)),
            active=bool(payload.get("active", False)),
        )


@dataclass(slots=True)
class ConnectionProfile:
    """SSH settings used to reach managed hosts."""

    name: str
    key_path: str = ""
    port: int = DEFAULT_SSH_PORT
    username: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "key_path": self.key_path,
            "port": self.port,
            "username": self.username,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ConnectionProfile:
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            msg = "profile payload missing name"
            raise ValueError(msg)
        return cls(
            name=name,
            key_path=str(payload.get("key_path", "")),
            port=int(payload.get("port", DEFAULT_SSH_PORT)),
            username=str(payload.get("username", "")),
        )


@dataclass(slots=True)
class Registry:
    """In-memory view of the registry file."""

    servers: list[ServerEntry] = field(default_factory=list)
    profiles: list[ConnectionProfile] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "servers": [entry.to_payload() for entry in self.servers],
            "profiles": [profile.to_payload() for profile in self.profiles],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Registry:
        registry = cls()
        for key, factory, target in (
            ("servers", ServerEntry.from_payload, registry.servers),
            ("profiles", ConnectionProfile.from_payload, registry.profiles),
        ):
            raw = payload.get(key, [])
            if not isinstance(raw, list):
                continue
            for item in raw:
                if not isinstance(item, dict):
                    continue
                try:
                    target.append(factory(item))
                except (TypeError, ValueError):
                    logger.warning("Skipping malformed {} record in registry", key)
        return registry


def default_registry_path() -> Path:
    """Return the default registry file path within the user data dir."""

    return data_dir() / _DEFAULT_FILENAME


class RegistryStore:
    """Manage the server and profile records on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else default_registry_path()

    @property
    def path(self) -> Path:
        """Expose the backing file path."""

        return self._path

    def is_initialized(self) -> bool:
        return self._path.exists()

    def initialize(self) -> None:
        """Create an empty registry file, keeping existing records."""

        if self.is_initialized():
            return
        self._write(Registry())

    # ------------------------------------------------------------------
    # Servers
    # ------------------------------------------------------------------
    def list_servers(self) -> list[ServerEntry]:
        return list(self._read().servers)

    def get_server(self, name: str) -> ServerEntry:
        for entry in self._read().servers:
            if entry.name == name:
                return entry
        raise RegistryError(f"CM server entry does not exist with id {name}")

    def has_server(self, name: str) -> bool:
        return any(entry.name == name for entry in self._read().servers)

    def get_active(self) -> ServerEntry:
        """Return the server selected with :meth:`activate`."""

        for entry in self._read().servers:
            if entry.active:
                return entry
        raise RegistryError("No active CM server selected")

    def register(self, entry: ServerEntry) -> ServerEntry:
        """Add a new server and make it the active one."""

        registry = self._read()
        if any(item.name == entry.name for item in registry.servers):
            raise RegistryError(f"CM server entry already exists with id {entry.name}")
        for item in registry.servers:
            item.active = False
        registered = replace(entry, active=True)
        registry.servers.append(registered)
        self._write(registry)
        logger.debug("Registered CM server {}", entry.name)
        return registered

    def deregister(self, name: str) -> None:
        registry = self._read()
        remaining = [entry for entry in registry.servers if entry.name != name]
        if len(remaining) == len(registry.servers):
            raise RegistryError(f"CM registry entry does not exist with id {name}")
        registry.servers = remaining
        self._write(registry)

    def activate(self, name: str) -> ServerEntry:
        """Mark ``name`` as the active server and deactivate every other one."""

        registry = self._read()
        selected: ServerEntry | None = None
        for entry in registry.servers:
            entry.active = entry.name == name
            if entry.active:
                selected = entry
        if selected is None:
            raise RegistryError(f"CM server entry does not exist with id {name}")
        self._write(registry)
        return selected

    def clear_servers(self) -> None:
        registry = self._read()
        registry.servers = []
        self._write(registry)

    def attach_profile(self, server_name: str, profile_name: str) -> ServerEntry:
        """Link a connection profile to a server entry."""

        registry = self._read()
        if not any(profile.name == profile_name for profile in registry.profiles):
            raise RegistryError(f"Connection profile entry does not exist with id {profile_name}")
        for entry in registry.servers:
            if entry.name == server_name:
                entry.connection_profile = profile_name
                self._write(registry)
                return entry
        raise RegistryError(f"CM server entry does not exist with id {server_name}")

    # ------------------------------------------------------------------
    # Connection profiles
    # ------------------------------------------------------------------
    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._read().profiles)

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._read().profiles:
            if profile.name == name:
                return profile
        raise RegistryError(f"Connection profile entry does not exist with id {name}")

    def add_profile(self, profile: ConnectionProfile) -> None:
        registry = self._read()
        if any(item.name == profile.name for item in registry.profiles):
            raise RegistryError(f"Connection profile entry already exists with id {profile.name}")
        registry.profiles.append(profile)
        self._write(registry)

    def remove_profile(self, name: str) -> None:
        """Delete a profile and detach it from servers referencing it."""

        registry = self._read()
        remaining = [profile for profile in registry.profiles if profile.name != name]
        if len(remaining) == len(registry.profiles):
            raise RegistryError(f"Connection profile entry does not exist with id {name}")
        registry.profiles = remaining
        for entry in registry.servers:
            if entry.connection_profile == name:
                entry.connection_profile = ""
        self._write(registry)

    def clear_profiles(self) -> None:
        registry = self._read()
        registry.profiles = []
        for entry in registry.servers:
            entry.connection_profile = ""
        self._write(registry)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _read(self) -> Registry:
        if not self._path.exists():
            return Registry()
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError:
            return Registry()
        if not raw.strip():
            return Registry()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Registry file {} is corrupted; ignoring it", self._path)
            return Registry()
        if not isinstance(payload, dict):
            return Registry()
        return Registry.from_payload(payload)

    def _write(self, registry: Registry) -> None:
        """Persist the registry atomically, readable only by the owner."""

        serialized = json.dumps(registry.to_payload(), indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(serialized)
            os.replace(tmp_path, self._path)
            with suppress(PermissionError, NotImplementedError):  # pragma: no cover
                os.chmod(self._path, 0o600)
        finally:
            if os.path.exists(tmp_path):  # pragma: no cover - failed replace
                os.remove(tmp_path)
