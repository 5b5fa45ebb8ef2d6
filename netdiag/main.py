"""Command line front end for the netdiag probing engine."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from rich.console import Console

from ._exceptions import NetdiagError
from ._log import console, logger, setup_logging
from ._models import HopRecord, ProbeOutcome
from ._ping import ping
from ._probe import Prober
from ._render import (
    hop_text,
    outcome_text,
    ping_summary_text,
    system_info_table,
    trace_state_text,
    trace_table,
)
from ._resolve import reverse_lookup
from ._settings import Settings
from ._sysinfo import collect_system_info
from ._traceroute import run_trace

EXIT_OK = 0
EXIT_UNREACHED = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netdiag",
        description="Ping, traceroute and local network information.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Verbosity of the diagnostic log",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ping_cmd = sub.add_parser("ping", help="Send echo requests to a host")
    ping_cmd.add_argument("host", help="Hostname or IPv4 address")
    ping_cmd.add_argument("-c", "--count", type=int, default=settings.ping_count)
    ping_cmd.add_argument("-t", "--ttl", type=int, default=settings.ping_ttl)
    ping_cmd.add_argument(
        "-w", "--timeout", type=int, default=settings.ping_timeout_ms,
        help="Per-probe timeout in milliseconds",
    )
    ping_cmd.add_argument("-s", "--size", type=int, default=settings.payload_size)
    ping_cmd.add_argument(
        "-i", "--interval", type=int, default=settings.ping_interval_ms,
        help="Pause between probes in milliseconds",
    )

    trace_cmd = sub.add_parser("trace", help="Discover the path to a host")
    trace_cmd.add_argument("host", help="Hostname or IPv4 address")
    trace_cmd.add_argument("-m", "--max-hops", type=int, default=settings.max_hops)
    trace_cmd.add_argument(
        "-w", "--timeout", type=int, default=settings.per_hop_timeout_ms,
        help="Per-hop timeout in milliseconds",
    )
    trace_cmd.add_argument("-s", "--size", type=int, default=settings.payload_size)
    trace_cmd.add_argument(
        "--resolve",
        action=argparse.BooleanOptionalAction,
        default=settings.resolve_names,
        help="Look up host names for hop addresses",
    )
    trace_cmd.add_argument(
        "--table",
        action="store_true",
        help="Print a summary table once the trace finishes",
    )

    sub.add_parser("info", help="Show local host and network information")
    sub.add_parser("tui", help="Open the interactive terminal UI")
    return parser


def cmd_ping(args: argparse.Namespace, out: Console, prober: Optional[Prober]) -> int:
    out.print(f"Pinging {args.host}...", markup=False)

    def show(index: int, outcome: ProbeOutcome) -> None:
        out.print(outcome_text(outcome))

    result = ping(
        args.host,
        count=args.count,
        ttl=args.ttl,
        timeout_ms=args.timeout,
        payload_size=args.size,
        interval_ms=args.interval,
        prober=prober,
        on_reply=show,
    )
    out.print(ping_summary_text(result))
    return EXIT_OK if result.stats.received else EXIT_UNREACHED


def cmd_trace(args: argparse.Namespace, out: Console, prober: Optional[Prober]) -> int:
    hostnames: dict[str, Optional[str]] = {}

    def show(record: HopRecord) -> None:
        hostname = None
        address = record.address
        if args.resolve and address:
            if address not in hostnames:
                hostnames[address] = reverse_lookup(address)
            hostname = hostnames[address]
        out.print(hop_text(record, hostname))

    out.print(
        f"Tracing route to {args.host} over a maximum of {args.max_hops} hops",
        markup=False,
    )
    result = run_trace(
        args.host,
        args.max_hops,
        args.timeout,
        payload_size=args.size,
        prober=prober,
        on_hop=show,
    )
    out.print(trace_state_text(result), style="bold")
    if args.table:
        out.print(trace_table(result, {a: h for a, h in hostnames.items() if h}))
    return EXIT_OK if result.reached else EXIT_UNREACHED


def cmd_info(args: argparse.Namespace, out: Console, prober: Optional[Prober]) -> int:
    out.print(system_info_table(collect_system_info()))
    return EXIT_OK


def cmd_tui(args: argparse.Namespace, out: Console, prober: Optional[Prober]) -> int:
    from .tui import NetdiagApp

    NetdiagApp(settings=args.settings, prober=prober).run()
    return EXIT_OK


COMMANDS = {
    "ping": cmd_ping,
    "trace": cmd_trace,
    "info": cmd_info,
    "tui": cmd_tui,
}


def run(
    argv: Optional[Sequence[str]] = None,
    *,
    settings: Optional[Settings] = None,
    prober: Optional[Prober] = None,
    out: Optional[Console] = None,
) -> int:
    """Parse ``argv``, execute one command and return the exit status."""
    out = out or console
    try:
        settings = settings or Settings.from_env()
    except NetdiagError as exc:
        out.print(f"Error: {exc}", style="bold red", markup=False)
        return EXIT_ERROR

    args = build_parser(settings).parse_args(argv)
    args.settings = settings
    setup_logging(args.log_level)

    try:
        return COMMANDS[args.command](args, out, prober)
    except NetdiagError as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        out.print(f"Error: {exc}", style="bold red", markup=False)
        return EXIT_ERROR
    except KeyboardInterrupt:
        out.print("Interrupted.", style="yellow")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(run())
