"""Single echo probe with a caller-chosen TTL and timeout."""

from __future__ import annotations

import secrets
import socket
import time
from typing import Callable, Optional

from ._exceptions import InvalidOptions, RawSocketPermissionError
from ._icmp import (
    ICMP_ECHO_REPLY,
    ICMP_TIME_EXCEEDED,
    build_echo_request,
    matches_probe,
    parse_packet,
    unreachable_reason,
)
from ._models import (
    Failed,
    IntermediateHop,
    ProbeOptions,
    ProbeOutcome,
    Reached,
    TimedOut,
)
from ._resolve import resolve_destination

RECV_BUFFER = 65535

SocketFactory = Callable[[], socket.socket]


def raw_icmp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)


def _new_identifier() -> int:
    return secrets.randbelow(0x10000)


def _check_options(options: object) -> ProbeOptions:
    if not isinstance(options, ProbeOptions):
        raise InvalidOptions(f"options must be ProbeOptions, got {type(options).__name__}")
    return options


class Prober:
    """Sends one ICMP echo request per call and classifies the answer.

    Every call opens its own socket and closes it before returning, so a
    single instance can be shared between threads.
    """

    def __init__(
        self,
        socket_factory: Optional[SocketFactory] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._socket_factory = socket_factory or raw_icmp_socket
        self._clock = clock

    def open_socket(self) -> socket.socket:
        try:
            return self._socket_factory()
        except PermissionError as exc:
            message = (
                "Raw socket requires elevated privileges. Use sudo or grant "
                "CAP_NET_RAW to the Python interpreter."
            )
            raise RawSocketPermissionError(message) from exc

    def probe(self, destination: str, options: ProbeOptions) -> ProbeOutcome:
        """Resolve ``destination`` and probe it once."""
        options = _check_options(options)
        address = resolve_destination(destination)
        return self.probe_address(address, options)

    def probe_address(self, address: str, options: ProbeOptions) -> ProbeOutcome:
        """Probe an already resolved IPv4 address once."""
        options = _check_options(options)
        identifier = _new_identifier()
        sequence = _new_identifier()
        packet = build_echo_request(identifier, sequence, options.payload_size)
        try:
            with self.open_socket() as sock:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, options.ttl)
                sent_at = self._clock()
                sock.sendto(packet, (address, 0))
                return self._receive(
                    sock, identifier, sequence, sent_at, sent_at + options.timeout
                )
        except OSError as exc:
            return Failed(reason=str(exc) or type(exc).__name__)

    def _receive(
        self,
        sock: socket.socket,
        identifier: int,
        sequence: int,
        sent_at: float,
        deadline: float,
    ) -> ProbeOutcome:
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                return TimedOut()

            sock.settimeout(remaining)
            try:
                pkt, _ = sock.recvfrom(RECV_BUFFER)
            except socket.timeout:
                return TimedOut()
            received_at = self._clock()

            try:
                received = parse_packet(pkt)
            except ValueError:
                continue

            icmp_pkt = received.icmp_packet
            if not matches_probe(identifier, sequence, icmp_pkt):
                continue

            rtt = (received_at - sent_at) * 1000
            source = received.ip_header.src_addr
            if icmp_pkt.type == ICMP_ECHO_REPLY:
                return Reached(address=source, round_trip_ms=rtt)
            if icmp_pkt.type == ICMP_TIME_EXCEEDED:
                return IntermediateHop(address=source, round_trip_ms=rtt)
            return Failed(reason=f"{unreachable_reason(icmp_pkt.code)} from {source}")


def probe(
    destination: str,
    options: Optional[ProbeOptions] = None,
    *,
    prober: Optional[Prober] = None,
) -> ProbeOutcome:
    """Send exactly one echo request to ``destination`` and classify the result.

    Raises :class:`InvalidOptions` for a blank destination or bad options and
    :class:`ResolutionFailed` when the name does not resolve. Timeouts and
    transport errors come back as :class:`TimedOut` and :class:`Failed`.
    """
    return (prober or Prober()).probe(destination, options or ProbeOptions())
