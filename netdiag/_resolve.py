"""Forward and reverse name lookups used by the probing core."""

from __future__ import annotations

import socket
from typing import Optional

from ._exceptions import InvalidOptions, ResolutionFailed


def valid_ip(host: str) -> bool:
    try:
        socket.inet_aton(host)
    except OSError:
        return False
    return host.count(".") == 3


def resolve_destination(destination: str) -> str:
    """Return the IPv4 address for ``destination``.

    IPv4 literals are returned unchanged; names go through the system resolver.
    """
    if not isinstance(destination, str) or not destination.strip():
        raise InvalidOptions("destination must be a non-empty host name or address")
    host = destination.strip()
    if valid_ip(host):
        return host
    try:
        return socket.gethostbyname(host)
    except (OSError, UnicodeError) as exc:
        raise ResolutionFailed(host, f"Resolve error {host}: {exc}") from exc


def reverse_lookup(addr: str) -> Optional[str]:
    try:
        return socket.gethostbyaddr(addr)[0]
    except (OSError, UnicodeError):
        return None
