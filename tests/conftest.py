import socket
import struct
from collections import deque

import pytest

from netdiag import TimedOut
from netdiag._icmp import icmp_checksum

LOCAL_ADDR = "10.0.0.2"


def ip_header(src, dst, payload_len, ttl=64, protocol=1):
    return struct.pack(
        "!BBHHHBBH4s4s",
        0x45,
        0,
        20 + payload_len,
        0x1234,
        0,
        ttl,
        protocol,
        0,
        socket.inet_aton(src),
        socket.inet_aton(dst),
    )


def icmp_message(icmp_type, code, rest, data):
    header = struct.pack("!BBH", icmp_type, code, 0) + rest
    checksum = icmp_checksum(header + data)
    return struct.pack("!BBH", icmp_type, code, checksum) + rest + data


def request_ids(request):
    _, _, _, identifier, sequence = struct.unpack("!BBHHH", request[:8])
    return identifier, sequence


def echo_reply(request, src):
    identifier, sequence = request_ids(request)
    icmp = icmp_message(0, 0, struct.pack("!HH", identifier, sequence), request[8:])
    return ip_header(src, LOCAL_ADDR, len(icmp)) + icmp


def icmp_error(request, src, dst, icmp_type, code=0):
    quoted = ip_header(LOCAL_ADDR, dst, len(request), ttl=1) + request[:8]
    icmp = icmp_message(icmp_type, code, b"\x00\x00\x00\x00", quoted)
    return ip_header(src, LOCAL_ADDR, len(icmp)) + icmp


def time_exceeded(request, router, dst):
    return icmp_error(request, router, dst, 11)


def unreachable(request, src, dst, code=1):
    return icmp_error(request, src, dst, 3, code)


class FakeSocket:
    """Stands in for a raw ICMP socket.

    ``responder(request, address, ttl)`` returns the packets the network
    would deliver after the request is sent.
    """

    def __init__(self, responder=None, send_error=None):
        self.responder = responder
        self.send_error = send_error
        self.inbox = deque()
        self.sent = []
        self.ttl = None
        self.timeouts = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.closed = True

    def setsockopt(self, level, option, value):
        if option == socket.IP_TTL:
            self.ttl = value

    def settimeout(self, value):
        self.timeouts.append(value)

    def sendto(self, data, address):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((data, address))
        if self.responder is not None:
            self.inbox.extend(self.responder(data, address[0], self.ttl))
        return len(data)

    def recvfrom(self, bufsize):
        if not self.inbox:
            raise socket.timeout("timed out")
        return self.inbox.popleft(), ("0.0.0.0", 0)


class SocketFactory:
    def __init__(self, responder=None, send_error=None):
        self.responder = responder
        self.send_error = send_error
        self.sockets = []

    def __call__(self):
        sock = FakeSocket(self.responder, self.send_error)
        self.sockets.append(sock)
        return sock


def path_responder(routers, destination):
    """Routers answer with time exceeded by TTL, the destination with echo replies."""

    def respond(request, address, ttl):
        if ttl <= len(routers):
            return [time_exceeded(request, routers[ttl - 1], address)]
        return [echo_reply(request, destination)]

    return respond


class ScriptedProber:
    """Replays outcomes keyed by TTL; unscripted TTLs time out."""

    def __init__(self, script=None):
        self.script = {ttl: deque(outcomes) for ttl, outcomes in (script or {}).items()}
        self.calls = []

    def probe_address(self, address, options):
        self.calls.append((address, options))
        pending = self.script.get(options.ttl)
        if pending:
            return pending.popleft()
        return TimedOut()


@pytest.fixture(autouse=True)
def no_dns(monkeypatch):
    """Resolve only names listed here; everything else fails like NXDOMAIN."""
    names = {"example.test": "203.0.113.10", "localhost": "127.0.0.1"}

    def fake_gethostbyname(host):
        try:
            return names[host]
        except KeyError:
            raise socket.gaierror(-2, "Name or service not known") from None

    monkeypatch.setattr(socket, "gethostbyname", fake_gethostbyname)
    return names
