"""ICMPv4 packet building and parsing."""

from __future__ import annotations

import socket
import struct
from typing import Optional

from ._models import IcmpPacket, IpHeader, ReceivedPacket

ICMP_ECHO_REQUEST = 8
ICMP_ECHO_REPLY = 0
ICMP_TIME_EXCEEDED = 11
ICMP_DEST_UNREACHABLE = 3

IPPROTO_ICMP = 1

_IP_HEADER = struct.Struct("!BBHHHBBH4s4s")
_ICMP_HEADER = struct.Struct("!BBHHH")

UNREACHABLE_REASONS = {
    0: "destination network unreachable",
    1: "destination host unreachable",
    2: "destination protocol unreachable",
    3: "destination port unreachable",
    4: "packet too big",
    5: "source route failed",
    6: "destination network unknown",
    7: "destination host unknown",
    9: "destination network prohibited",
    10: "destination host prohibited",
    11: "network unreachable for type of service",
    12: "host unreachable for type of service",
    13: "communication administratively prohibited",
}


def icmp_checksum(data: bytes) -> int:
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack("!%dH" % (len(data) // 2), data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return (~total) & 0xFFFF


def build_payload(size: int) -> bytes:
    return bytes(0x61 + (i % 23) for i in range(size))


def build_echo_request(identifier: int, sequence: int, payload_size: int) -> bytes:
    data = build_payload(payload_size)
    header = _ICMP_HEADER.pack(ICMP_ECHO_REQUEST, 0, 0, identifier, sequence)
    checksum = icmp_checksum(header + data)
    header = _ICMP_HEADER.pack(ICMP_ECHO_REQUEST, 0, checksum, identifier, sequence)
    return header + data


def parse_packet(pkt: bytes) -> ReceivedPacket:
    """Split a raw socket read into its IPv4 header and ICMP message.

    Raises :class:`ValueError` when the buffer is too short to hold both.
    """
    if len(pkt) < _IP_HEADER.size:
        raise ValueError("Packet shorter than minimum IP header length (20 bytes).")

    iph = _IP_HEADER.unpack(pkt[: _IP_HEADER.size])
    version_ihl = iph[0]
    ihl = version_ihl & 0xF
    iph_length = ihl * 4

    if iph_length < _IP_HEADER.size or len(pkt) < iph_length + _ICMP_HEADER.size:
        raise ValueError(
            "Packet shorter than IP header + ICMP header (IHL + 8 bytes)."
        )

    flags_fragment = iph[4]
    ip_hdr = IpHeader(
        version=version_ihl >> 4,
        ihl=ihl,
        tos=iph[1],
        total_length=iph[2],
        id=iph[3],
        flags=flags_fragment >> 13,
        fragment_offset=flags_fragment & 0x1FFF,
        ttl=iph[5],
        protocol=iph[6],
        checksum=iph[7],
        src_addr=socket.inet_ntoa(iph[8]),
        dest_addr=socket.inet_ntoa(iph[9]),
    )

    icmph = _ICMP_HEADER.unpack(pkt[iph_length : iph_length + _ICMP_HEADER.size])
    icmp_pkt = IcmpPacket(
        type=icmph[0],
        code=icmph[1],
        checksum=icmph[2],
        id=icmph[3],
        sequence=icmph[4],
        data=pkt[iph_length + _ICMP_HEADER.size :],
    )
    return ReceivedPacket(ip_header=ip_hdr, icmp_packet=icmp_pkt, raw=pkt)


def quoted_echo(icmp_pkt: IcmpPacket) -> Optional[tuple[int, int]]:
    """Return ``(identifier, sequence)`` of the echo request quoted by an ICMP error."""
    data = icmp_pkt.data
    if len(data) < _IP_HEADER.size:
        return None
    inner_length = (data[0] & 0xF) * 4
    if inner_length < _IP_HEADER.size or data[9] != IPPROTO_ICMP:
        return None
    quoted = data[inner_length : inner_length + _ICMP_HEADER.size]
    if len(quoted) < _ICMP_HEADER.size:
        return None
    inner_type, _, _, inner_id, inner_seq = _ICMP_HEADER.unpack(quoted)
    if inner_type != ICMP_ECHO_REQUEST:
        return None
    return inner_id, inner_seq


def matches_probe(identifier: int, sequence: int, icmp_pkt: IcmpPacket) -> bool:
    if icmp_pkt.type == ICMP_ECHO_REPLY:
        return icmp_pkt.id == identifier and icmp_pkt.sequence == sequence

    if icmp_pkt.type in {ICMP_TIME_EXCEEDED, ICMP_DEST_UNREACHABLE}:
        return quoted_echo(icmp_pkt) == (identifier, sequence)

    return False


def unreachable_reason(code: int) -> str:
    reason = UNREACHABLE_REASONS.get(code, "destination unreachable")
    return f"{reason} (code {code})"
