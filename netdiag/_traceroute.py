"""Traceroute helper functionality."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import AsyncIterator, Iterator
from typing import Callable, Optional

from ._exceptions import InvalidOptions
from ._log import logger
from ._models import (
    MAX_TTL,
    Failed,
    HopRecord,
    IntermediateHop,
    ProbeOptions,
    Reached,
    TraceResult,
)
from ._probe import Prober
from ._resolve import resolve_destination

DEFAULT_MAX_HOPS = 30
DEFAULT_HOP_TIMEOUT_MS = 5000
DEFAULT_PAYLOAD_SIZE = 32

HopSink = Callable[[HopRecord], None]


def _check_max_hops(max_hops: int) -> None:
    if isinstance(max_hops, bool) or not isinstance(max_hops, int):
        raise InvalidOptions(f"max_hops must be an integer, got {max_hops!r}")
    if not 1 <= max_hops <= MAX_TTL:
        raise InvalidOptions(f"max_hops must be between 1 and {MAX_TTL}, got {max_hops}")


def _log_hop(record: HopRecord) -> None:
    outcome = record.outcome
    if isinstance(outcome, (Reached, IntermediateHop)):
        logger.debug(
            "  hop %d: %s rtt=%.2f ms elapsed=%.2f ms",
            record.hop,
            outcome.address,
            outcome.round_trip_ms,
            record.elapsed_ms,
        )
    elif isinstance(outcome, Failed):
        logger.debug("  hop %d: error %s", record.hop, outcome.reason)
    else:
        logger.debug("  hop %d: timeout", record.hop)


def _sweep(
    prober: Prober,
    target: str,
    resolved: str,
    max_hops: int,
    template: ProbeOptions,
    cancel: Optional[threading.Event],
) -> Iterator[HopRecord]:
    logger.info(
        "Starting traceroute to %s (%s) max_hops=%d timeout=%d ms",
        target,
        resolved,
        max_hops,
        template.timeout_ms,
    )
    for hop in range(1, max_hops + 1):
        if cancel is not None and cancel.is_set():
            logger.info("Traceroute to %s cancelled before hop %d", target, hop)
            return

        options = ProbeOptions(
            timeout_ms=template.timeout_ms,
            ttl=hop,
            payload_size=template.payload_size,
        )
        started = time.perf_counter()
        outcome = prober.probe_address(resolved, options)
        elapsed_ms = (time.perf_counter() - started) * 1000

        record = HopRecord(hop=hop, elapsed_ms=elapsed_ms, outcome=outcome)
        _log_hop(record)
        yield record

        if isinstance(outcome, Reached):
            logger.info("Destination reached at hop %d", hop)
            return

    logger.warning("Traceroute finished without reaching %s", resolved)


def _prepare(
    destination: str,
    max_hops: int,
    per_hop_timeout_ms: int,
    payload_size: int,
) -> tuple[str, str, ProbeOptions]:
    _check_max_hops(max_hops)
    template = ProbeOptions(timeout_ms=per_hop_timeout_ms, ttl=1, payload_size=payload_size)
    resolved = resolve_destination(destination)
    return destination.strip(), resolved, template


def trace(
    destination: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    per_hop_timeout_ms: int = DEFAULT_HOP_TIMEOUT_MS,
    *,
    payload_size: int = DEFAULT_PAYLOAD_SIZE,
    prober: Optional[Prober] = None,
    cancel: Optional[threading.Event] = None,
) -> Iterator[HopRecord]:
    """Sweep TTL from 1 upward and yield one :class:`HopRecord` per hop.

    Arguments are validated and the destination is resolved before this
    returns, so :class:`InvalidOptions` and :class:`ResolutionFailed` are
    raised before any probe is sent. The returned iterator is lazy and
    stops after the first :class:`Reached` outcome, after ``max_hops``
    records, or once ``cancel`` is set. Timeouts and per-hop errors do not
    end the sweep.
    """
    target, resolved, template = _prepare(
        destination, max_hops, per_hop_timeout_ms, payload_size
    )
    return _sweep(prober or Prober(), target, resolved, max_hops, template, cancel)


def run_trace(
    destination: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    per_hop_timeout_ms: int = DEFAULT_HOP_TIMEOUT_MS,
    *,
    payload_size: int = DEFAULT_PAYLOAD_SIZE,
    prober: Optional[Prober] = None,
    cancel: Optional[threading.Event] = None,
    on_hop: Optional[HopSink] = None,
) -> TraceResult:
    """Run a whole trace, pushing each record to ``on_hop`` as it arrives."""
    target, resolved, template = _prepare(
        destination, max_hops, per_hop_timeout_ms, payload_size
    )
    hops: list[HopRecord] = []
    for record in _sweep(prober or Prober(), target, resolved, max_hops, template, cancel):
        hops.append(record)
        if on_hop is not None:
            on_hop(record)
    return TraceResult(target=target, resolved=resolved, max_hops=max_hops, hops=tuple(hops))


async def atrace(
    destination: str,
    max_hops: int = DEFAULT_MAX_HOPS,
    per_hop_timeout_ms: int = DEFAULT_HOP_TIMEOUT_MS,
    *,
    payload_size: int = DEFAULT_PAYLOAD_SIZE,
    prober: Optional[Prober] = None,
) -> AsyncIterator[HopRecord]:
    """Async variant of :func:`trace`.

    Each blocking call runs in a worker thread. Cancelling the consuming
    task stops the sweep before the next hop is probed.
    """
    target, resolved, template = await asyncio.to_thread(
        _prepare, destination, max_hops, per_hop_timeout_ms, payload_size
    )
    cancel = threading.Event()
    records = _sweep(prober or Prober(), target, resolved, max_hops, template, cancel)
    done = object()
    try:
        while True:
            record = await asyncio.to_thread(next, records, done)
            if record is done:
                return
            yield record
    finally:
        cancel.set()
