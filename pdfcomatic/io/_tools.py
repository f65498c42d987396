"""Locate external executables."""

from __future__ import annotations

import shutil

from ..utils.errors import ExternalToolError


def which_or_raise(exe: str) -> str:
    """Return the absolute path of *exe* or raise if it cannot be found.

    Args:
        exe: Program name looked up on ``$PATH`` or a path to the binary.

    Raises:
        ExternalToolError: When the program is not available.
    """
    found = shutil.which(exe)
    if not found:
        raise ExternalToolError(
            exe,
            f"{exe} not found on $PATH – install DCMTK or set the path in the configuration.",
        )
    return found
