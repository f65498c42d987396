"""Pytest fixtures: isolated environment and stub DCMTK executables."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

_DCMDUMP_STUB = """#!/usr/bin/env bash
key=""
while [ $# -gt 0 ]; do
  if [ "$1" = "+P" ]; then shift; key="$1"; fi
  shift
done
echo "$key" >> "{root}/dcmdump.calls"
if [ -f "{root}/dump/$key" ]; then cat "{root}/dump/$key"; fi
exit "$(cat "{root}/dcmdump.exit" 2>/dev/null || echo 0)"
"""

_PDF2DCM_STUB = """#!/usr/bin/env bash
printf '%s\\n' "$@" > "{root}/pdf2dcm.args"
code="$(cat "{root}/pdf2dcm.exit" 2>/dev/null || echo 0)"
if [ "$code" = "0" ]; then : > "${{@: -1}}"; fi
exit "$code"
"""


class StubTools:
    """Handle on the stub ``dcmdump``/``pdf2dcm`` installed on ``$PATH``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / "dump").mkdir(parents=True)
        bindir = root / "bin"
        bindir.mkdir()
        for name, body in (("dcmdump", _DCMDUMP_STUB), ("pdf2dcm", _PDF2DCM_STUB)):
            exe = bindir / name
            exe.write_text(body.format(root=root))
            exe.chmod(0o755)
        self.bindir = bindir

    def set_dump(self, keyword: str, output: str | bytes) -> None:
        """Make ``dcmdump +P keyword`` print *output* (bytes are written raw)."""
        path = self.root / "dump" / keyword
        if isinstance(output, bytes):
            path.write_bytes(output)
        else:
            path.write_text(output)

    def set_exit(self, tool: str, code: int) -> None:
        (self.root / f"{tool}.exit").write_text(str(code))

    @property
    def dcmdump_calls(self) -> list[str]:
        path = self.root / "dcmdump.calls"
        return path.read_text().split() if path.exists() else []

    @property
    def pdf2dcm_args(self) -> list[str] | None:
        """Arguments of the last ``pdf2dcm`` call or ``None`` if it never ran."""
        path = self.root / "pdf2dcm.args"
        return path.read_text().splitlines() if path.exists() else None

    @property
    def pdf2dcm_raw_args(self) -> list[bytes] | None:
        path = self.root / "pdf2dcm.args"
        return path.read_bytes().splitlines() if path.exists() else None

    def pdf2dcm_overrides(self) -> dict[str, str]:
        """``-k`` overrides of the last ``pdf2dcm`` call as a dict."""
        args = self.pdf2dcm_args or []
        pairs = [args[i + 1] for i, tok in enumerate(args) if tok == "-k"]
        return dict(p.split("=", 1) for p in pairs)


def dump_line(tag: str, vr: str, keyword: str, value: str | None) -> str:
    """Render one line the way ``dcmdump`` prints it."""
    shown = "(no value available)" if value is None else f"[{value}]"
    length = 0 if value is None else len(value)
    return f"({tag}) {vr} {shown:<40} # {length:>3}, 1 {keyword}\n"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep user configuration and colour settings out of every test."""
    for var in (
        "NO_COLOR",
        "PDFCOMATIC_CONFIG",
        "PDFCOMATIC_LOG_DIR",
        "PDF2DCM_ISSUEROFPATIENTID_ENV",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def stub_tools(tmp_path, monkeypatch) -> StubTools:
    tools = StubTools(tmp_path / "stubs")
    monkeypatch.setenv("PATH", f"{tools.bindir}{os.pathsep}" + os.environ.get("PATH", ""))
    return tools


@pytest.fixture
def inputs(tmp_path) -> dict[str, Path]:
    """A dummy PDF, an existing reference file, and an output location."""
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4\n%%EOF\n")
    ref = tmp_path / "ref.dcm"
    ref.write_bytes(b"\0" * 132)
    return {"pdf": pdf, "ref": ref, "out": tmp_path / "out.dcm"}


@pytest.fixture
def reference_dump(stub_tools) -> StubTools:
    """Stub ``dcmdump`` answers for a typical reference study."""
    stub_tools.set_dump("StudyDate", dump_line("0008,0020", "DA", "StudyDate", "20240101"))
    stub_tools.set_dump("StudyTime", dump_line("0008,0030", "TM", "StudyTime", "101500"))
    stub_tools.set_dump("AccessionNumber", dump_line("0008,0050", "SH", "AccessionNumber", None))
    stub_tools.set_dump("StudyID", dump_line("0020,0010", "SH", "StudyID", "S42"))
    stub_tools.set_dump("InstitutionName", dump_line("0008,0080", "LO", "InstitutionName", "General Hospital"))
    stub_tools.set_dump("ReferringPhysicianName", dump_line("0008,0090", "PN", "ReferringPhysicianName", "DOE^JANE"))
    stub_tools.set_dump("StudyDescription", dump_line("0008,1030", "LO", "StudyDescription", "CT CHEST"))
    stub_tools.set_dump("PatientAge", dump_line("0010,1010", "AS", "PatientAge", "045Y"))
    stub_tools.set_dump("PatientWeight", dump_line("0010,1030", "DS", "PatientWeight", "70.5"))
    # InstitutionAddress intentionally absent: dcmdump prints nothing.
    return stub_tools
