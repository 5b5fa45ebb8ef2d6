import io

from rich.console import Console

from netdiag import (
    Failed,
    HopRecord,
    IntermediateHop,
    PingResult,
    PingStats,
    Reached,
    SystemInfo,
    TimedOut,
    TraceResult,
)
from netdiag._render import (
    format_ms,
    hop_text,
    outcome_text,
    ping_summary_text,
    system_info_table,
    trace_table,
)


def render(renderable):
    console = Console(file=io.StringIO(), width=160, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def test_format_ms():
    assert format_ms(None) == "-"
    assert format_ms(float("inf")) == "-"
    assert format_ms(1.234) == "1.23"


def test_outcome_lines():
    assert outcome_text(Reached("1.1.1.1", 3.0)).plain == "Reply from 1.1.1.1: time=3.00 ms"
    assert outcome_text(TimedOut()).plain == "Request timed out."
    assert outcome_text(Failed("boom")).plain == "Failed. Status: boom"
    assert "TTL expired at 10.0.0.1" in outcome_text(IntermediateHop("10.0.0.1", 1.0)).plain


def test_hop_line_includes_hostname_and_elapsed_time():
    record = HopRecord(hop=2, elapsed_ms=5.5, outcome=IntermediateHop("10.0.0.1", 4.25))
    line = hop_text(record, "gw.example").plain
    assert line.startswith("  2  10.0.0.1 (gw.example)  4.25 ms")
    assert line.endswith("[5.50 ms]")


def test_trace_table_lists_every_hop():
    result = TraceResult(
        target="example.test",
        resolved="203.0.113.10",
        max_hops=3,
        hops=(
            HopRecord(1, 1.0, IntermediateHop("10.0.0.1", 0.9)),
            HopRecord(2, 500.0, TimedOut()),
            HopRecord(3, 2.0, Reached("203.0.113.10", 1.8)),
        ),
    )
    text = render(trace_table(result, {"10.0.0.1": "gw.example"}))
    assert "Traceroute to example.test (203.0.113.10)" in text
    assert "gw.example" in text
    assert "timeout" in text
    assert "Destination reached in 3 hops" in text


def test_ping_summary_without_replies():
    stats = PingStats.from_outcomes((TimedOut(),))
    text = ping_summary_text(PingResult("h", "192.0.2.1", (TimedOut(),), stats)).plain
    assert "Sent = 1, Received = 0, Lost = 1 (100.0% loss)" in text
    assert "Minimum" not in text


def test_system_info_marks_missing_fields():
    info = SystemInfo(
        hostname="box",
        fqdn=None,
        addresses=(),
        primary_address="192.168.1.2",
        os_name="Linux",
        os_release="6.1",
        os_version=None,
        machine="x86_64",
        python_version="3.12.0",
    )
    text = render(system_info_table(info))
    assert "box" in text
    assert "Linux 6.1" in text
    assert "unavailable" in text
