"""REST client for the cluster-manager controller API.

Requests go either straight to the controller over HTTP(S) or, for servers
registered with ``use_gateway``, through an SSH session on the controller
host that runs ``curl`` locally. Both paths hand back decoded JSON and
report every failure as :class:`~cmctl.core.errors.TransportError`.
"""

from __future__ import annotations

import json
import shlex
from collections.abc import Callable
from typing import Any, TypeVar

import requests
from loguru import logger

from cmctl.config import AppConfig
from cmctl.core.errors import TransportError
from cmctl.core.interfaces import CommandRunner
from cmctl.core.models import Cluster, Deployment, Host, Service, User, parse_items
from cmctl.registry import ConnectionProfile, ServerEntry
from cmctl.ssh import SSHRunner

__all__ = ["CMClient"]

T = TypeVar("T")


class CMClient:
    """Fetch topology collections from one registered controller."""

    def __init__(
        self,
        server: ServerEntry,
        *,
        config: AppConfig | None = None,
        profile: ConnectionProfile | None = None,
        session: requests.Session | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._server = server
        self._config = config if config is not None else AppConfig()
        self._profile = profile
        self._session = session if session is not None else requests.Session()
        self._runner: CommandRunner | None = runner

    @property
    def server(self) -> ServerEntry:
        return self._server

    def api_url(self, uri: str) -> str:
        return f"{self._server.base_url}/api/{self._config.api_version}/{uri}"

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def list_clusters(self) -> list[Cluster]:
        return self._items("clusters", Cluster.from_payload)

    def list_hosts(self) -> list[Host]:
        return self._items("hosts", Host.from_payload)

    def list_services(self, cluster: str) -> list[Service]:
        return self._items(
            f"clusters/{cluster}/services",
            lambda item: Service.from_payload(item, cluster),
        )

    def list_users(self) -> list[User]:
        return self._items("users", User.from_payload)

    def get_deployment(self) -> Deployment:
        payload = self._get_json("cm/deployment")
        try:
            return Deployment.from_payload(payload)
        except ValueError as exc:
            raise TransportError(f"unexpected deployment response: {exc}") from exc

    def export_cluster_template(self, cluster: str) -> str:
        """Return the raw cluster template document."""

        return self._get_text(f"clusters/{cluster}/export")

    def fetch_hosts(self) -> list[Host]:
        return self.list_hosts()

    def fetch_deployment(self) -> Deployment:
        return self.get_deployment()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _items(self, uri: str, factory: Callable[[dict[str, Any]], T]) -> list[T]:
        payload = self._get_json(uri)
        try:
            return [factory(item) for item in parse_items(payload)]
        except ValueError as exc:
            raise TransportError(f"unexpected response for '{uri}': {exc}") from exc

    def _get_json(self, uri: str) -> Any:
        body = self._get_text(uri)
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise TransportError(f"response for '{uri}' is not valid JSON") from exc

    def _get_text(self, uri: str) -> str:
        if self._server.use_gateway:
            return self._get_via_gateway(uri)
        return self._get_direct(uri)

    def _get_direct(self, uri: str) -> str:
        url = self.api_url(uri)
        logger.debug("GET {}", url)
        try:
            response = self._session.get(
                url,
                auth=(self._server.username, self._server.password),
                timeout=self._config.request_timeout,
                verify=self._config.verify_tls,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"request to {url} failed: {exc}") from exc
        return response.text

    def gateway_command(self, uri: str) -> str:
        """Build the curl command run on the controller host."""

        credentials = f"{self._server.username}:{self._server.password}"
        parts = ["curl", "--silent", "--show-error", "--fail", "-u", credentials]
        if not self._config.verify_tls:
            parts.append("--insecure")
        parts.append(self.api_url(uri))
        return shlex.join(parts)

    def _get_via_gateway(self, uri: str) -> str:
        if self._runner is None:
            self._runner = SSHRunner(self._profile, timeout=self._config.ssh_timeout)
        logger.debug("GET {} through gateway {}", uri, self._server.hostname)
        result = self._runner.run(
            self._server.hostname,
            self.gateway_command(uri),
            timeout=self._config.request_timeout,
        )
        if result.exit_code != 0:
            detail = result.stderr.strip() or f"exit code {result.exit_code}"
            raise TransportError(f"gateway request for '{uri}' failed: {detail}")
        return result.stdout
