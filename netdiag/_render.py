"""Rich renderables for probe outcomes, hop records and host information."""

from __future__ import annotations

import math
from typing import Optional

from rich import box
from rich.table import Table
from rich.text import Text

from ._models import (
    Failed,
    HopRecord,
    IntermediateHop,
    PingResult,
    ProbeOutcome,
    Reached,
    SystemInfo,
    TraceResult,
    TraceState,
)


def format_ms(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return "-"
    return f"{value:.2f}"


def outcome_text(outcome: ProbeOutcome) -> Text:
    if isinstance(outcome, Reached):
        return Text.assemble(
            ("Reply from ", "green"),
            (outcome.address, "bold green"),
            f": time={format_ms(outcome.round_trip_ms)} ms",
        )
    if isinstance(outcome, IntermediateHop):
        return Text.assemble(
            ("TTL expired at ", "yellow"),
            (outcome.address, "bold yellow"),
            f": time={format_ms(outcome.round_trip_ms)} ms",
        )
    if isinstance(outcome, Failed):
        return Text(f"Failed. Status: {outcome.reason}", style="red")
    return Text("Request timed out.", style="dim")


def hop_text(record: HopRecord, hostname: Optional[str] = None) -> Text:
    """One log line per hop, as a terminal traceroute prints it."""
    outcome = record.outcome
    line = Text(f"{record.hop:>3}  ", style="cyan")
    if isinstance(outcome, (Reached, IntermediateHop)):
        style = "bold green" if isinstance(outcome, Reached) else "magenta"
        line.append(outcome.address, style=style)
        if hostname:
            line.append(f" ({hostname})", style="green")
        line.append(f"  {format_ms(outcome.round_trip_ms)} ms")
    elif isinstance(outcome, Failed):
        line.append(f"!  {outcome.reason}", style="red")
    else:
        line.append("*  Request timed out.", style="dim")
    line.append(f"  [{format_ms(record.elapsed_ms)} ms]", style="dim")
    return line


def trace_table(result: TraceResult, hostnames: Optional[dict[str, str]] = None) -> Table:
    hostnames = hostnames or {}
    title_suffix = f" ({result.resolved})" if result.resolved != result.target else ""
    table = Table(
        title=f"Traceroute to {result.target}{title_suffix}",
        caption=trace_state_text(result),
        box=box.SQUARE,
        expand=True,
    )
    table.add_column("Hop", justify="right", style="cyan", no_wrap=True)
    table.add_column("Address", style="magenta")
    table.add_column("Hostname", style="green")
    table.add_column("RTT (ms)", justify="right")
    table.add_column("Elapsed (ms)", justify="right", style="dim")
    table.add_column("Status")

    for record in result.hops:
        outcome = record.outcome
        address = record.address or "*"
        if isinstance(outcome, Reached):
            status = Text("reached", style="bold green")
        elif isinstance(outcome, IntermediateHop):
            status = Text("ttl exceeded", style="yellow")
        elif isinstance(outcome, Failed):
            status = Text(outcome.reason, style="red")
        else:
            status = Text("timeout", style="dim")
        table.add_row(
            str(record.hop),
            address,
            hostnames.get(address, ""),
            format_ms(record.round_trip_ms),
            format_ms(record.elapsed_ms),
            status,
        )
    return table


def trace_state_text(result: TraceResult) -> str:
    if result.state is TraceState.REACHED:
        return f"Destination reached in {len(result.hops)} hops"
    if result.state is TraceState.EXHAUSTED:
        return f"Destination not reached within {result.max_hops} hops"
    return f"Trace stopped after {len(result.hops)} hops"


def ping_summary_text(result: PingResult) -> Text:
    stats = result.stats
    text = Text()
    text.append(f"Ping statistics for {result.resolved}:\n", style="bold")
    text.append(
        f"  Packets: Sent = {stats.sent}, Received = {stats.received}, "
        f"Lost = {stats.lost} ({stats.loss_percent:.1f}% loss)"
    )
    if stats.rtt_min is not None and stats.rtt_avg is not None and stats.rtt_max is not None:
        text.append(
            "\nApproximate round trip times in milli-seconds:\n"
            f"  Minimum = {stats.rtt_min:.2f} ms, "
            f"Average = {stats.rtt_avg:.2f} ms, "
            f"Maximum = {stats.rtt_max:.2f} ms"
        )
    return text


def system_info_table(info: SystemInfo) -> Table:
    table = Table(title="Local system", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    rows = (
        ("Hostname", info.hostname),
        ("FQDN", info.fqdn),
        ("Addresses", ", ".join(info.addresses) if info.addresses else None),
        ("Primary address", info.primary_address),
        ("Operating system", " ".join(p for p in (info.os_name, info.os_release) if p) or None),
        ("OS version", info.os_version),
        ("Machine", info.machine),
        ("Python", info.python_version),
    )
    for label, value in rows:
        table.add_row(label, value if value else Text("unavailable", style="dim"))
    return table
