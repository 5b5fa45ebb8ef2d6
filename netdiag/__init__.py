from ._exceptions import (
    InvalidOptions,
    NetdiagError,
    RawSocketPermissionError,
    ResolutionFailed,
)
from ._models import (
    Failed,
    HopRecord,
    IntermediateHop,
    PingResult,
    PingStats,
    ProbeOptions,
    ProbeOutcome,
    Reached,
    SystemInfo,
    TimedOut,
    TraceResult,
    TraceState,
)
from ._ping import ping
from ._probe import Prober, probe
from ._settings import Settings
from ._sysinfo import collect_system_info
from ._traceroute import atrace, run_trace, trace

__all__ = [
    "Prober",
    "probe",
    "trace",
    "run_trace",
    "atrace",
    "ping",
    "collect_system_info",
    "Settings",
    "ProbeOptions",
    "ProbeOutcome",
    "Reached",
    "IntermediateHop",
    "TimedOut",
    "Failed",
    "HopRecord",
    "TraceResult",
    "TraceState",
    "PingResult",
    "PingStats",
    "SystemInfo",
    "NetdiagError",
    "InvalidOptions",
    "ResolutionFailed",
    "RawSocketPermissionError",
]
