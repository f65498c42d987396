"""Scoped SIGINT/SIGTERM handling.

:func:`interrupt_guard` turns a termination signal into
:class:`~pdfcomatic.utils.errors.InterruptedRun` for the duration of a
``with`` block and always puts the previous handlers back afterwards.
Child processes started through :func:`subprocess.run` are killed when that
exception unwinds through it.
"""

from __future__ import annotations

import signal
from contextlib import contextmanager
from typing import Dict, Iterator, Sequence

import structlog

from .errors import InterruptedRun

log = structlog.get_logger()

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def _raise_interrupted(signum, _frame) -> None:
    raise InterruptedRun(signum)


def _restore(previous: Dict[int, object]) -> None:
    for sig, handler in previous.items():
        # None means the handler was not installed from Python.
        signal.signal(sig, signal.SIG_DFL if handler is None else handler)


@contextmanager
def interrupt_guard(signals: Sequence[int] = DEFAULT_SIGNALS) -> Iterator[None]:
    """Raise :class:`InterruptedRun` when one of *signals* arrives.

    Args:
        signals: Signal numbers to intercept.

    Yields:
        None
    """
    previous: Dict[int, object] = {}
    try:
        for sig in signals:
            previous[sig] = signal.signal(sig, _raise_interrupted)
    except ValueError:
        # signal.signal() only works in the main thread; run unguarded.
        log.debug("signals.unguarded", reason="not main thread")
        _restore(previous)
        previous.clear()

    try:
        yield
    finally:
        _restore(previous)
