from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from ._exceptions import InvalidOptions

MIN_TTL = 1
MAX_TTL = 255
# 65535 - 20 byte IPv4 header - 8 byte ICMP header
MAX_PAYLOAD_SIZE = 65507


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidOptions(f"{name} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class ProbeOptions:
    timeout_ms: int = 1000
    ttl: int = 64
    payload_size: int = 32

    def __post_init__(self) -> None:
        timeout_ms = _require_int("timeout_ms", self.timeout_ms)
        ttl = _require_int("ttl", self.ttl)
        payload_size = _require_int("payload_size", self.payload_size)
        if timeout_ms <= 0:
            raise InvalidOptions(f"timeout_ms must be positive, got {timeout_ms}")
        if not MIN_TTL <= ttl <= MAX_TTL:
            raise InvalidOptions(
                f"ttl must be between {MIN_TTL} and {MAX_TTL}, got {ttl}"
            )
        if not 0 <= payload_size <= MAX_PAYLOAD_SIZE:
            raise InvalidOptions(
                f"payload_size must be between 0 and {MAX_PAYLOAD_SIZE}, got {payload_size}"
            )

    @property
    def timeout(self) -> float:
        """Timeout in seconds, as socket APIs expect it."""
        return self.timeout_ms / 1000


@dataclass
class IcmpPacket:
    type: int
    code: int
    checksum: int
    id: int
    sequence: int
    data: bytes


@dataclass
class IpHeader:
    version: int
    ihl: int
    tos: int
    total_length: int
    id: int
    flags: int
    fragment_offset: int
    ttl: int
    protocol: int
    checksum: int
    src_addr: str
    dest_addr: str


@dataclass
class ReceivedPacket:
    ip_header: IpHeader
    icmp_packet: IcmpPacket
    raw: bytes


@dataclass(frozen=True)
class Reached:
    """Echo reply received from the destination."""

    address: str
    round_trip_ms: float


@dataclass(frozen=True)
class IntermediateHop:
    """A router on the path reported that the probe's TTL ran out."""

    address: str
    round_trip_ms: float


@dataclass(frozen=True)
class TimedOut:
    """No matching reply arrived before the probe deadline."""


@dataclass(frozen=True)
class Failed:
    """Any other ICMP status or a local transport error."""

    reason: str


ProbeOutcome = Union[Reached, IntermediateHop, TimedOut, Failed]


@dataclass(frozen=True)
class HopRecord:
    hop: int
    elapsed_ms: float
    outcome: ProbeOutcome

    @property
    def address(self) -> Optional[str]:
        return getattr(self.outcome, "address", None)

    @property
    def round_trip_ms(self) -> Optional[float]:
        return getattr(self.outcome, "round_trip_ms", None)


class TraceState(str, enum.Enum):
    REACHED = "reached"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TraceResult:
    target: str
    resolved: str
    max_hops: int
    hops: tuple[HopRecord, ...]

    @property
    def reached(self) -> bool:
        return bool(self.hops) and isinstance(self.hops[-1].outcome, Reached)

    @property
    def state(self) -> TraceState:
        if self.reached:
            return TraceState.REACHED
        if len(self.hops) >= self.max_hops:
            return TraceState.EXHAUSTED
        return TraceState.CANCELLED


@dataclass(frozen=True)
class PingStats:
    sent: int
    received: int
    lost: int
    loss_percent: float
    rtt_min: Optional[float]
    rtt_avg: Optional[float]
    rtt_max: Optional[float]

    @classmethod
    def from_outcomes(cls, outcomes: tuple[ProbeOutcome, ...]) -> "PingStats":
        rtts = [outcome.round_trip_ms for outcome in outcomes if isinstance(outcome, Reached)]
        sent = len(outcomes)
        received = len(rtts)
        lost = sent - received
        return cls(
            sent=sent,
            received=received,
            lost=lost,
            loss_percent=(lost / sent) * 100 if sent else 0.0,
            rtt_min=min(rtts) if rtts else None,
            rtt_avg=(sum(rtts) / len(rtts)) if rtts else None,
            rtt_max=max(rtts) if rtts else None,
        )


@dataclass(frozen=True)
class PingResult:
    target: str
    resolved: str
    outcomes: tuple[ProbeOutcome, ...]
    stats: PingStats


@dataclass(frozen=True)
class SystemInfo:
    hostname: Optional[str]
    fqdn: Optional[str]
    addresses: tuple[str, ...]
    primary_address: Optional[str]
    os_name: Optional[str]
    os_release: Optional[str]
    os_version: Optional[str]
    machine: Optional[str]
    python_version: Optional[str]
