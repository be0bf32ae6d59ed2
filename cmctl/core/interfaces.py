"""Protocol definitions for cmctl collaborators."""

from __future__ import annotations

from typing import Protocol

from cmctl.core.models import Deployment, Host


class TopologyFetcher(Protocol):
    """Source of raw topology collections for host resolution."""

    def fetch_hosts(self) -> list[Host]:
        """Return every host known to the controller."""

    def fetch_deployment(self) -> Deployment:
        """Return the clusters -> services -> roles -> hosts tree."""


class CommandResult(Protocol):
    """Outcome of a command run on one host."""

    host: str
    exit_code: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    """Protocol for remote command execution backends."""

    def run(self, host: str, command: str, *, timeout: float | None = None) -> CommandResult:
        """Execute a command on a remote host."""
