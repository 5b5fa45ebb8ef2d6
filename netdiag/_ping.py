"""Repeated echo probes with loss and round-trip statistics."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ._exceptions import InvalidOptions
from ._log import logger
from ._models import (
    Failed,
    IntermediateHop,
    PingResult,
    PingStats,
    ProbeOptions,
    ProbeOutcome,
    Reached,
)
from ._probe import Prober
from ._resolve import resolve_destination

OutcomeSink = Callable[[int, ProbeOutcome], None]


def _log_outcome(index: int, outcome: ProbeOutcome) -> None:
    if isinstance(outcome, Reached):
        logger.info(
            "Ping %d: reply from %s in %.2f ms",
            index,
            outcome.address,
            outcome.round_trip_ms,
        )
    elif isinstance(outcome, IntermediateHop):
        logger.warning(
            "Ping %d: TTL expired in transit at %s", index, outcome.address
        )
    elif isinstance(outcome, Failed):
        logger.error("Ping %d: error %s", index, outcome.reason)
    else:
        logger.warning("Ping %d: timed out", index)


def ping(
    destination: str,
    *,
    count: int = 4,
    ttl: int = 64,
    timeout_ms: int = 1000,
    payload_size: int = 32,
    interval_ms: int = 1000,
    prober: Optional[Prober] = None,
    cancel: Optional[threading.Event] = None,
    on_reply: Optional[OutcomeSink] = None,
) -> PingResult:
    """Send ``count`` echo requests to ``destination`` one after another.

    ``on_reply`` receives ``(index, outcome)`` for every probe as soon as it
    completes. Setting ``cancel`` ends the run early; the statistics then
    cover only the probes that were sent.
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidOptions(f"count must be a positive integer, got {count!r}")
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms < 0:
        raise InvalidOptions(f"interval_ms must be a non-negative integer, got {interval_ms!r}")
    options = ProbeOptions(timeout_ms=timeout_ms, ttl=ttl, payload_size=payload_size)
    resolved = resolve_destination(destination)
    prober = prober or Prober()
    waiter = cancel or threading.Event()

    logger.info("Starting ping to %s (%s) count=%d ttl=%d", destination, resolved, count, ttl)
    outcomes: list[ProbeOutcome] = []
    for index in range(1, count + 1):
        if waiter.is_set():
            logger.info("Ping to %s cancelled after %d probes", resolved, index - 1)
            break
        outcome = prober.probe_address(resolved, options)
        outcomes.append(outcome)
        _log_outcome(index, outcome)
        if on_reply is not None:
            on_reply(index, outcome)
        if index < count and interval_ms > 0 and waiter.wait(interval_ms / 1000):
            logger.info("Ping to %s cancelled after %d probes", resolved, index)
            break

    stats = PingStats.from_outcomes(tuple(outcomes))
    logger.info(
        "Ping stats -> sent: %d received: %d loss: %.1f%%",
        stats.sent,
        stats.received,
        stats.loss_percent,
    )
    return PingResult(
        target=destination.strip(),
        resolved=resolved,
        outcomes=tuple(outcomes),
        stats=stats,
    )
