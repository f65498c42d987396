"""Colour-aware diagnostics written to stderr.

Whether colour is used is decided once, up front, and captured in an
immutable :class:`OutputStyle`.  Everything that prints diagnostics receives
that value instead of consulting global state.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import click

__all__ = ["OutputStyle", "Diagnostics"]


def _stderr_isatty() -> bool:
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


@dataclass(frozen=True, slots=True)
class OutputStyle:
    """Resolved presentation settings for diagnostic output.

    Attributes:
        color: Emit ANSI colour sequences when ``True``.
    """

    color: bool

    @classmethod
    def resolve(
        cls,
        no_color: bool = False,
        environ: Optional[Mapping[str, str]] = None,
        isatty: Optional[Callable[[], bool]] = None,
    ) -> "OutputStyle":
        """Return the style for this run.

        Colour is disabled by ``--no-color``, by the presence of ``NO_COLOR``
        (any value, including empty), or when stderr is not a terminal.

        Args:
            no_color: Value of the ``--no-color`` flag.
            environ: Environment mapping; defaults to :data:`os.environ`.
            isatty: Terminal probe; defaults to ``sys.stderr.isatty``.

        Returns:
            OutputStyle: Frozen style value.
        """
        env = os.environ if environ is None else environ
        if no_color or "NO_COLOR" in env:
            return cls(color=False)
        probe = isatty or _stderr_isatty
        return cls(color=bool(probe()))


class Diagnostics:
    """Print user-facing messages to stderr using a fixed :class:`OutputStyle`."""

    def __init__(self, style: OutputStyle) -> None:
        self.style = style

    def _emit(self, text: str, **styles) -> None:
        click.secho(text, err=True, color=self.style.color, **styles)

    def error(self, text: str) -> None:
        """Red ``Error:`` line."""
        self._emit(f"Error: {text}", fg="red", bold=True)

    def warning(self, text: str) -> None:
        """Yellow ``Warning:`` line."""
        self._emit(f"Warning: {text}", fg="yellow")

    def note(self, text: str) -> None:
        self._emit(text, fg="cyan")

    def success(self, text: str) -> None:
        """Green message prefixed with a tick."""
        self._emit(f"✓ {text}", fg="green")
