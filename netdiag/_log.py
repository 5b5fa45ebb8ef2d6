from __future__ import annotations

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

console = Console()
FORMAT = "%(message)s"

logger = logging.getLogger("netdiag")


def setup_logging(
    level: Union[str, int] = "INFO",
    *,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Route ``netdiag`` log records through ``handler``, a rich handler by default."""
    if handler is None:
        handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=True,
            show_time=False,
        )
    handler.setFormatter(logging.Formatter(FORMAT, datefmt="[%X]"))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
