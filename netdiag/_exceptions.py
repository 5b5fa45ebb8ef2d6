from __future__ import annotations

from typing import Optional


class NetdiagError(Exception):
    """Base class for errors that abort a whole netdiag operation."""


class InvalidOptions(NetdiagError, ValueError):
    """Raised when caller-supplied probe or trace options are out of bounds."""


class ResolutionFailed(NetdiagError, RuntimeError):
    """Raised when a destination name does not resolve to an address."""

    def __init__(self, destination: str, message: Optional[str] = None) -> None:
        self.destination = destination
        super().__init__(message or f"Resolve error {destination}")


class RawSocketPermissionError(NetdiagError, PermissionError):
    """Raised when raw socket creation fails due to missing privileges."""
