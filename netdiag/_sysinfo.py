"""Local host and network identification."""

from __future__ import annotations

import platform
import socket
from typing import Optional

import psutil

from ._models import SystemInfo

# Connecting a UDP socket only selects a route, no packet is sent.
_ROUTE_PROBE_ADDR = ("192.0.2.1", 9)


def _hostname() -> Optional[str]:
    try:
        return socket.gethostname() or None
    except OSError:
        return None


def _fqdn(hostname: Optional[str]) -> Optional[str]:
    if not hostname:
        return None
    try:
        return socket.getfqdn(hostname) or None
    except OSError:
        return None


def local_addresses() -> tuple[str, ...]:
    """IPv4 addresses bound to the local interfaces, in interface order."""
    try:
        interfaces = psutil.net_if_addrs()
    except (OSError, psutil.Error):
        return ()
    addresses: list[str] = []
    for _name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family == socket.AF_INET and addr.address not in addresses:
                addresses.append(addr.address)
    return tuple(addresses)


def primary_address() -> Optional[str]:
    """Source address the kernel would pick for outbound traffic."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_ROUTE_PROBE_ADDR)
            return sock.getsockname()[0]
    except OSError:
        return None


def collect_system_info() -> SystemInfo:
    hostname = _hostname()
    uname = platform.uname()
    return SystemInfo(
        hostname=hostname,
        fqdn=_fqdn(hostname),
        addresses=local_addresses(),
        primary_address=primary_address(),
        os_name=uname.system or None,
        os_release=uname.release or None,
        os_version=uname.version or None,
        machine=uname.machine or None,
        python_version=platform.python_version() or None,
    )
