"""Exception hierarchy shared by the pdfcomatic pipeline and CLI."""

from __future__ import annotations

import signal


class PdfcomaticError(RuntimeError):
    """Base class for every failure that should end a run with a message."""

    pass


class ConfigError(PdfcomaticError):
    """Raised when the YAML configuration cannot be located, read, or validated."""

    pass


class ValidationError(PdfcomaticError):
    """Raised when command-line inputs fail the pre-flight checks."""

    pass


class AttributeExtractionError(PdfcomaticError):
    """Raised when a reference attribute cannot be read."""

    pass


class ExternalToolError(PdfcomaticError):
    """Raised when ``dcmdump`` or ``pdf2dcm`` is missing or exits non-zero.

    Attributes:
        tool: Name of the external program.
        returncode: Exit status reported by the program, ``None`` when it
            never ran or was killed after a timeout.
    """

    def __init__(self, tool: str, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.tool = tool
        self.returncode = returncode


class InterruptedRun(PdfcomaticError):
    """Raised inside :func:`pdfcomatic.utils.signals.interrupt_guard` on SIGINT/SIGTERM."""

    def __init__(self, signum: int) -> None:
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = str(signum)
        super().__init__(f"Interrupted by {name}")
        self.signum = signum

    @property
    def exit_code(self) -> int:
        """Shell convention for a process terminated by a signal."""
        return 128 + self.signum
