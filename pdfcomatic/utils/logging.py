"""
Package-level logging configuration.

* Console output on **stderr**: rich when colour is allowed and the user asked
  for verbose output, otherwise plain ``[LEVEL] message`` lines.
* Rotating log file inside ``$PDFCOMATIC_LOG_DIR`` when that variable is set.

The public helper :func:`setup_logging` wires everything and should be the
sole entry-point used by the CLI.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer as StructlogConsoleRenderer
from structlog.stdlib import LoggerFactory, ProcessorFormatter

__all__ = ["setup_logging", "LOG_DIR_ENV"]

LOG_DIR_ENV = "PDFCOMATIC_LOG_DIR"


def _file_handler(level: int) -> logging.Handler | None:
    """Return a rotating file handler or *None* when no log directory is set.

    Args:
        level: Log-level for the handler.

    Returns:
        Handler writing ``pdfcomatic.log`` under ``$PDFCOMATIC_LOG_DIR``.
    """
    env_dir = os.environ.get(LOG_DIR_ENV)
    if not env_dir:
        return None

    logdir = Path(env_dir).expanduser()
    logdir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=logdir / "pdfcomatic.log",
        maxBytes=5_000_000,  # ~5 MB before rollover
        backupCount=3,
        encoding="utf-8",
        errors="backslashreplace",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter(colors=False))
    return handler


def _formatter(*, colors: bool, fmt: str = "%(message)s") -> logging.Formatter:
    """Render structlog events for one handler, with or without ANSI colour."""
    return ProcessorFormatter(
        processors=[
            ProcessorFormatter.remove_processors_meta,
            StructlogConsoleRenderer(colors=colors),
        ],
        fmt=fmt,
    )


def setup_logging(
    *,
    verbose: bool = False,
    debug: bool = False,
    color: bool = False,
) -> None:
    """Configure console logging and the optional file mirror.

    Args:
        verbose: Emit INFO-level messages to the console.
        debug: Emit DEBUG-level messages plus timestamps.
        color: Allow ANSI colour in console output.
    """
    console_lvl = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    file_lvl = logging.DEBUG if debug else logging.INFO

    handlers: list[logging.Handler] = []

    # --- Rich or minimal console handler ---------------------------------------
    if color and (verbose or debug):
        console: logging.Handler = RichHandler(
            console=Console(stderr=True),
            level=console_lvl,
            rich_tracebacks=debug,
            markup=False,  # dcmdump output contains square brackets
        )
        console.setFormatter(_formatter(colors=True))
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_lvl)
        console.setFormatter(
            _formatter(colors=color, fmt="[%(levelname)s] %(message)s")
        )
    handlers.append(console)

    file_handler = _file_handler(file_lvl)
    if file_handler:
        handlers.append(file_handler)

    # Re-running the CLI in one process (tests) must replace stale handlers.
    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            *([structlog.processors.TimeStamper(fmt="iso")] if debug else []),
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            min(console_lvl, file_lvl) if file_handler else console_lvl
        ),
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )
