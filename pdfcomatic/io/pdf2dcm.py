"""Safe wrapper around DCMTK ``pdf2dcm``.

``pdf2dcm`` builds the Encapsulated PDF object itself (UIDs, encoding, IOD
rules).  This module only assembles the command line and runs it; the
tool's own progress output goes straight to the terminal.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from ..utils.errors import ExternalToolError
from ._tools import which_or_raise

log = structlog.get_logger()


def build_pdf2dcm_cmd(
    exe: str,
    pdf_in: Path,
    dcm_out: Path,
    *,
    title: str,
    study_from: Path,
    overrides: Sequence[Tuple[str, str]],
    flags: Sequence[str] = (),
) -> List[str]:
    """Compose the ``pdf2dcm`` argument vector.

    Args:
        exe: Executable to run.
        pdf_in: Source PDF.
        dcm_out: Destination DICOM file.
        title: Document title (``--title``).
        study_from: Reference file providing patient/study data
            (``--study-from``).
        overrides: Ordered ``(keyword, value)`` pairs, each emitted as
            ``-k keyword=value``.
        flags: Extra flags inserted right after the executable.

    Returns:
        list[str]: Tokens suitable for ``subprocess.run``.  The two file
        paths are always the final tokens.
    """
    cmd: List[str] = [exe, *flags, "--title", title, "--study-from", str(study_from)]
    for keyword, value in overrides:
        cmd += ["-k", f"{keyword}={value}"]
    cmd += [str(pdf_in), str(dcm_out)]
    return cmd


def resolve_executable(exe: str) -> str:
    """Return the absolute path of the ``pdf2dcm`` binary."""
    return which_or_raise(exe)


def run_pdf2dcm(cmd: Sequence[str], *, timeout: Optional[float] = None) -> int:
    """Execute a command produced by :func:`build_pdf2dcm_cmd`.

    Returns:
        ``0`` on success.

    Raises:
        ExternalToolError: When the program cannot be started, times out, or
            exits with a non-zero status.
    """
    log.info("pdf2dcm.run", output=cmd[-1])
    log.debug("pdf2dcm.cmd", cmd=list(cmd))
    try:
        res = subprocess.run(list(cmd), check=False, timeout=timeout)
    except FileNotFoundError as exc:
        raise ExternalToolError("pdf2dcm", f"Could not start {cmd[0]}: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError("pdf2dcm", f"pdf2dcm timed out after {timeout}s") from exc

    if res.returncode != 0:
        log.debug("pdf2dcm.failed", returncode=res.returncode)
        raise ExternalToolError(
            "pdf2dcm",
            f"pdf2dcm exited with status {res.returncode}",
            returncode=res.returncode,
        )
    return res.returncode
