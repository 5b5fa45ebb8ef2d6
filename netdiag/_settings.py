from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Optional

from ._exceptions import InvalidOptions

ENV_PREFIX = "NETDIAG_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    max_hops: int = 30
    per_hop_timeout_ms: int = 5000
    payload_size: int = 32
    ping_count: int = 4
    ping_ttl: int = 64
    ping_timeout_ms: int = 1000
    ping_interval_ms: int = 1000
    resolve_names: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``NETDIAG_*`` variables, e.g. ``NETDIAG_MAX_HOPS=20``."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for field in fields(cls):
            raw = env.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw.strip() == "":
                continue
            overrides[field.name] = _convert(field.name, field.type, raw.strip())
        return replace(cls(), **overrides)


def _convert(name: str, kind: object, raw: str) -> object:
    # field.type is a string under postponed annotations
    kind = getattr(kind, "__name__", kind)
    if kind == "bool":
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise InvalidOptions(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
    if kind == "int":
        try:
            return int(raw)
        except ValueError as exc:
            raise InvalidOptions(
                f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
            ) from exc
    if name == "log_level":
        level = raw.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise InvalidOptions(
                f"{ENV_PREFIX}{name.upper()} must be a logging level name, got {raw!r}"
            )
        return level
    return raw
