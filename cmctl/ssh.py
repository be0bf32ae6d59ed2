"""SSH helpers for running commands on managed hosts."""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import paramiko
from loguru import logger

from cmctl.core.errors import TransportError
from cmctl.registry import ConnectionProfile

__all__ = [
    "RemoteResult",
    "SSHRunner",
    "build_ssh_command",
    "run_interactive",
]

_DEFAULT_TIMEOUT = 10.0


@dataclass(slots=True)
class RemoteResult:
    """Output of a command executed on one host."""

    host: str
    exit_code: int
    stdout: str
    stderr: str


class SSHRunner:
    """Run non-interactive commands over SSH with a connection profile."""

    def __init__(
        self,
        profile: ConnectionProfile | None = None,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
    ) -> None:
        self._profile = profile
        self._timeout = timeout
        self._client_factory = client_factory

    def _connect_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "timeout": self._timeout,
            "auth_timeout": self._timeout,
            "banner_timeout": self._timeout,
            "allow_agent": True,
            "look_for_keys": True,
        }
        if self._profile is not None:
            kwargs["port"] = self._profile.port
            if self._profile.username:
                kwargs["username"] = self._profile.username
            if self._profile.key_path:
                kwargs["key_filename"] = str(Path(self._profile.key_path).expanduser())
        return kwargs

    def run(self, host: str, command: str, *, timeout: float | None = None) -> RemoteResult:
        """Execute ``command`` on ``host`` and collect its output."""

        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        logger.debug("Running remote command on {}", host)
        try:
            client.connect(host, **self._connect_kwargs())
            _, stdout, stderr = client.exec_command(command, timeout=timeout or self._timeout)
            exit_code = stdout.channel.recv_exit_status()
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
        except (paramiko.SSHException, OSError) as exc:
            raise TransportError(f"SSH command on {host} failed: {exc}") from exc
        finally:
            client.close()
        return RemoteResult(host=host, exit_code=exit_code, stdout=out, stderr=err)


def build_ssh_command(host: str, profile: ConnectionProfile | None = None) -> list[str]:
    """Construct the argv list for invoking the system ssh binary."""

    target = host
    if profile is not None and profile.username:
        target = f"{profile.username}@{host}"

    command: list[str] = ["ssh", target]
    if profile is not None:
        if profile.port:
            command.extend(["-p", str(profile.port)])
        if profile.key_path:
            command.extend(["-i", str(Path(profile.key_path).expanduser())])
    return command


def _normalize_exit_status(status: int) -> int:
    """Convert platform-specific wait status values to standard exit codes."""

    waitstatus_to_exitcode: Callable[[int], int] | None = getattr(
        os, "waitstatus_to_exitcode", None
    )
    if waitstatus_to_exitcode is not None:
        return waitstatus_to_exitcode(status)
    return status


def _spawn_ssh(argv: list[str]) -> int:
    """Invoke the system ssh binary using a pseudo-terminal when available."""

    try:
        import pty
    except ImportError as exc:  # pragma: no cover - platform specific
        msg = "PTY support is required to launch interactive ssh sessions"
        raise RuntimeError(msg) from exc

    return pty.spawn(argv)


def run_interactive(host: str, profile: ConnectionProfile | None = None) -> int:
    """Open an interactive SSH session, returning the ssh exit code."""

    command = build_ssh_command(host, profile)
    ssh_path = shutil.which(command[0])
    if ssh_path is None:
        raise TransportError("ssh command not found")

    argv = [ssh_path, *command[1:]]
    try:
        status = _spawn_ssh(argv)
    except (RuntimeError, OSError) as exc:  # pragma: no cover - platform specific
        raise TransportError(str(exc)) from exc
    return _normalize_exit_status(status)
