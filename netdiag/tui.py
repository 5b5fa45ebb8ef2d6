"""Interactive Textual TUI for netdiag."""

from __future__ import annotations

import threading
from typing import Optional

from rich.console import RenderableType
from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.logging import TextualHandler
from textual.widgets import Button, Footer, Input, RichLog

from ._exceptions import NetdiagError
from ._log import setup_logging
from ._models import HopRecord, ProbeOutcome
from ._ping import ping
from ._probe import Prober
from ._render import (
    hop_text,
    outcome_text,
    ping_summary_text,
    system_info_table,
    trace_state_text,
)
from ._settings import Settings
from ._sysinfo import collect_system_info
from ._traceroute import run_trace

EMPTY_TARGET_MESSAGE = "Error: Please enter a valid address (e.g. google.com)"


class NetdiagApp(App):
    """Ping, system information and traceroute with a terminal-style log panel."""

    CSS = """
    #form {
        height: auto;
        padding: 0 1;
    }
    #target {
        width: 1fr;
    }
    #output {
        border: round $accent;
        background: black;
        color: $text;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+l", "clear_log", "Clear"),
    ]

    def __init__(
        self,
        settings: Optional[Settings] = None,
        prober: Optional[Prober] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or Settings()
        self.prober = prober or Prober()
        self._cancel = threading.Event()
        self._busy = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="form"):
            yield Input(placeholder="google.com", id="target")
            yield Button("Ping", id="ping", flat=True)
            yield Button("System info", id="info", flat=True)
            yield Button("Traceroute", id="trace", flat=True)
            yield Button("Stop", id="stop", flat=True, disabled=True)
            yield Button("Clear", id="clear", flat=True)
        yield RichLog(id="output", wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        setup_logging(self.settings.log_level, handler=TextualHandler())
        self.query_one("#target", Input).focus()

    def write_output(self, renderable: RenderableType) -> None:
        self.query_one("#output", RichLog).write(renderable)

    def _write_from_worker(self, renderable: RenderableType) -> None:
        self.call_from_thread(self.write_output, renderable)

    def _target(self) -> Optional[str]:
        value = self.query_one("#target", Input).value.strip()
        if not value:
            self.write_output(Text(EMPTY_TARGET_MESSAGE, style="red"))
            return None
        return value

    def _start(self) -> bool:
        if self._busy:
            self.bell()
            return False
        self._busy = True
        self._cancel = threading.Event()
        self.query_one("#stop", Button).disabled = False
        return True

    def _finish(self) -> None:
        self._busy = False
        self.query_one("#stop", Button).disabled = True

    @on(Button.Pressed, "#ping")
    def start_ping(self) -> None:
        target = self._target()
        if target is None or not self._start():
            return
        self.write_output(Text(f"Pinging {target}...", style="bold"))
        self.perform_ping(target, self._cancel)

    @on(Button.Pressed, "#trace")
    def start_trace(self) -> None:
        target = self._target()
        if target is None or not self._start():
            return
        self.write_output(
            Text(
                f"Tracing route to {target} over a maximum of "
                f"{self.settings.max_hops} hops",
                style="bold",
            )
        )
        self.perform_trace(target, self._cancel)

    @on(Button.Pressed, "#info")
    def show_info(self) -> None:
        self.collect_info()

    @on(Button.Pressed, "#stop")
    def stop_probe(self) -> None:
        self._cancel.set()
        self.write_output(Text("Stopping after the current probe...", style="yellow"))

    @on(Button.Pressed, "#clear")
    def clear_output(self) -> None:
        self.query_one("#output", RichLog).clear()

    def action_clear_log(self) -> None:
        self.clear_output()

    @work(thread=True, exclusive=True, group="probe")
    def perform_ping(self, target: str, cancel: threading.Event) -> None:
        settings = self.settings

        def show(index: int, outcome: ProbeOutcome) -> None:
            self._write_from_worker(outcome_text(outcome))

        try:
            result = ping(
                target,
                count=settings.ping_count,
                ttl=settings.ping_ttl,
                timeout_ms=settings.ping_timeout_ms,
                payload_size=settings.payload_size,
                interval_ms=settings.ping_interval_ms,
                prober=self.prober,
                cancel=cancel,
                on_reply=show,
            )
            self._write_from_worker(ping_summary_text(result))
        except NetdiagError as exc:
            self._write_from_worker(Text(f"System Error: {exc}", style="bold red"))
        finally:
            self._write_from_worker(Text("-" * 20, style="dim"))
            self.call_from_thread(self._finish)

    @work(thread=True, exclusive=True, group="probe")
    def perform_trace(self, target: str, cancel: threading.Event) -> None:
        settings = self.settings

        def show(record: HopRecord) -> None:
            self._write_from_worker(hop_text(record))

        try:
            result = run_trace(
                target,
                settings.max_hops,
                settings.per_hop_timeout_ms,
                payload_size=settings.payload_size,
                prober=self.prober,
                cancel=cancel,
                on_hop=show,
            )
            self._write_from_worker(Text(trace_state_text(result), style="bold"))
        except NetdiagError as exc:
            self._write_from_worker(Text(f"System Error: {exc}", style="bold red"))
        finally:
            self._write_from_worker(Text("-" * 20, style="dim"))
            self.call_from_thread(self._finish)

    @work(thread=True, exclusive=True, group="info")
    def collect_info(self) -> None:
        self._write_from_worker(system_info_table(collect_system_info()))


if __name__ == "__main__":
    NetdiagApp().run()
