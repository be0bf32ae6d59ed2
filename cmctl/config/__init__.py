"""Configuration models and persistence helpers for cmctl."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from cmctl.paths import data_dir

__all__ = ["AppConfig", "ConfigStore", "default_config_path"]

_DEFAULT_CONFIG_FILENAME = "config.json"


@dataclass(slots=True)
class AppConfig:
    """Top-level application configuration settings."""

    api_version: str = "v19"
    request_timeout: float = 30.0
    verify_tls: bool = True
    ssh_timeout: float = 10.0

    def to_payload(self) -> dict[str, Any]:
        """Serialize the configuration into a JSON-compatible structure."""

        return {
            "api_version": self.api_version,
            "request_timeout": self.request_timeout,
            "verify_tls": self.verify_tls,
            "ssh_timeout": self.ssh_timeout,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AppConfig:
        """Create a configuration instance from serialized data.

        Values of the wrong type are ignored in favour of the defaults.
        """

        config = cls()
        for key, value in payload.items():
            try:
                config.set_value(key, value)
            except (KeyError, ValueError):
                continue
        return config

    def set_value(self, key: str, value: Any) -> None:
        """Assign a single setting, coercing strings from the command line."""

        names = {item.name for item in fields(self)}
        if key not in names:
            raise KeyError(key)
        if key == "api_version":
            normalized = str(value).strip()
            if not normalized:
                msg = "api_version must not be empty"
                raise ValueError(msg)
            self.api_version = normalized
        elif key == "verify_tls":
            self.verify_tls = _coerce_bool(value)
        else:
            number = _coerce_float(value)
            if number <= 0:
                msg = f"{key} must be positive"
                raise ValueError(msg)
            setattr(self, key, number)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    msg = f"expected a boolean value, got {value!r}"
    raise ValueError(msg)


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        msg = "expected a number, got a boolean"
        raise ValueError(msg)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"expected a number, got {value!r}") from exc


def default_config_path() -> Path:
    """Return the default location for the application's configuration file."""

    return data_dir() / _DEFAULT_CONFIG_FILENAME


class ConfigStore:
    """Manage persistence of the application configuration file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else default_config_path()

    @property
    def path(self) -> Path:
        """Expose the backing configuration file path."""

        return self._path

    def load(self) -> AppConfig:
        """Load configuration from disk, returning defaults when absent."""

        if not self._path.exists():
            return AppConfig()
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError:
            return AppConfig()
        if not raw.strip():
            return AppConfig()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return AppConfig()
        if not isinstance(payload, dict):
            return AppConfig()
        return AppConfig.from_payload(payload)

    def save(self, config: AppConfig) -> None:
        """Persist the provided configuration to disk atomically."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(config.to_payload(), indent=2, sort_keys=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(data, encoding="utf-8")
        tmp_path.replace(self._path)
