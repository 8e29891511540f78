"""
Logging setup for the CLI.

Usage:
    from defactory import logging_config
    logging_config.setup()
"""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup(level: int = logging.INFO, console: Console | None = None) -> None:
    """Route all logging through a single rich handler on stderr."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        log_time_format="%H:%M:%S",
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    # One line per JSON-RPC request is noise outside of debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

    logging.getLogger("defactory").setLevel(level)


def setup_minimal(console: Console | None = None) -> None:
    """Warnings and errors only."""
    setup(level=logging.WARNING, console=console)


def setup_debug(console: Console | None = None) -> None:
    """Everything, including the httpx request log."""
    setup(level=logging.DEBUG, console=console)
    logging.getLogger("httpx").setLevel(logging.INFO)
