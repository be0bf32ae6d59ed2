"""Error hierarchy shared by the cmctl core and its collaborators."""

from __future__ import annotations

__all__ = ["CmctlError", "RegistryError", "TransportError", "ValidationError"]


class CmctlError(Exception):
    """Base exception type for cmctl failures."""


class ValidationError(CmctlError):
    """Raised when a host filter has an invalid shape."""


class TransportError(CmctlError):
    """Raised when topology data cannot be fetched or decoded."""


class RegistryError(CmctlError):
    """Raised when a registry record is missing or conflicts with another."""
