"""Query single attributes with DCMTK ``dcmdump`` and parse its text output.

``dcmdump +P <keyword> <file>`` prints one line per matching element::

    (0008,0020) DA [20240101]                               #   8, 1 StudyDate
    (0008,0050) SH (no value available)                     #   0, 0 AccessionNumber

and nothing at all when the element is absent.  :func:`parse_dump_output`
is the only place that interprets this format.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ..models import AttributeStatus, DumpValue
from ..utils.errors import ExternalToolError
from ._tools import which_or_raise

log = structlog.get_logger()

NO_VALUE_MARKER = "(no value available)"

# Trailing "#  <length>, <vm> <Keyword>" comment written by dcmdump.
_COMMENT_RE = re.compile(r"#\s*\S+,\s*\S+\s+(\S+)\s*$")


# ---------------------------------------------------------------------------
# command construction / execution
# ---------------------------------------------------------------------------
def build_dcmdump_cmd(
    exe: str,
    ref: Path,
    keyword: str,
    flags: Sequence[str] = ("+L",),
) -> List[str]:
    """Compose the ``dcmdump`` argument vector for one keyword.

    Args:
        exe: Executable to run.
        ref: Reference DICOM file.
        keyword: Attribute keyword passed to ``+P``.
        flags: Extra flags inserted before ``+P``.

    Returns:
        list[str]: Tokens suitable for ``subprocess.run``.
    """
    return [exe, *flags, "+P", keyword, str(ref)]


def run_dcmdump(
    ref: Path,
    keyword: str,
    *,
    exe: str = "dcmdump",
    flags: Sequence[str] = ("+L",),
    timeout: Optional[float] = None,
) -> str:
    """Run ``dcmdump`` restricted to *keyword* and return its stdout.

    Raises:
        ExternalToolError: When the program is missing, times out, or exits
            with a non-zero status.
    """
    cmd = build_dcmdump_cmd(which_or_raise(exe), ref, keyword, flags)
    log.debug("dcmdump.cmd", cmd=cmd)
    try:
        # dcmdump writes element values in the file's own character set;
        # undecodable bytes survive as surrogates and round-trip via os.fsencode.
        res = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="surrogateescape",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(
            "dcmdump", f"dcmdump timed out after {timeout}s reading {keyword} from {ref}"
        ) from exc

    if res.returncode != 0:
        raise ExternalToolError(
            "dcmdump",
            f"dcmdump failed for {ref} ({keyword}), exit status {res.returncode}\n"
            f"stderr:\n{res.stderr.strip()}",
            returncode=res.returncode,
        )
    return res.stdout


# ---------------------------------------------------------------------------
# output parsing
# ---------------------------------------------------------------------------
def _line_keyword(line: str) -> Optional[str]:
    m = _COMMENT_RE.search(line)
    return m.group(1) if m else None


def _select_line(output: str, keyword: Optional[str]) -> Optional[str]:
    """Pick the line describing *keyword*.

    Lines whose trailing comment names *keyword* win; among those a top-level
    (unindented) line wins over one nested inside a sequence.  Without any
    named line the first non-blank line is used.
    """
    lines = [ln for ln in output.splitlines() if ln.strip()]
    if not lines:
        return None
    if keyword:
        named = [ln for ln in lines if _line_keyword(ln) == keyword]
        top_level = [ln for ln in named if not ln[:1].isspace()]
        if top_level:
            return top_level[0]
        if named:
            return named[0]
    return lines[0]


def parse_dump_output(output: str, keyword: str = "") -> DumpValue:
    """Interpret ``dcmdump +P`` output for a single attribute.

    Args:
        output: Captured stdout.
        keyword: Attribute that was requested; used to pick the right line
            and recorded on the result.

    Returns:
        DumpValue: ``MISSING`` for empty output, ``EMPTY`` when the element
        carries no value, ``PRESENT`` with the text between the first ``[``
        and the following ``]``, or ``MALFORMED`` when neither form matches.
    """
    line = _select_line(output, keyword or None)
    if line is None:
        return DumpValue(keyword, AttributeStatus.MISSING)

    open_at = line.find("[")
    marker_at = line.find(NO_VALUE_MARKER)
    if marker_at != -1 and (open_at == -1 or marker_at < open_at):
        return DumpValue(keyword, AttributeStatus.EMPTY)

    if open_at == -1:
        return DumpValue(keyword, AttributeStatus.MALFORMED)

    close_at = line.find("]", open_at + 1)
    if close_at == -1:
        return DumpValue(keyword, AttributeStatus.MALFORMED)

    value = line[open_at + 1 : close_at]
    if value == "":
        return DumpValue(keyword, AttributeStatus.EMPTY)
    return DumpValue(keyword, AttributeStatus.PRESENT, value)
