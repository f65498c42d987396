"""Read patient/study attributes from the reference DICOM file.

Two readers share one small interface, ``read(path, keyword) -> DumpValue``:

* :class:`DcmdumpReader` – one ``dcmdump +P`` call per keyword, parsed by
  :func:`pdfcomatic.io.dcmdump.parse_dump_output`.
* :class:`PydicomReader` – reads the dataset once with *pydicom* and looks
  elements up directly, which separates "absent" from "present but empty"
  without any text scraping.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Sequence

import pydicom
import structlog
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError
from pydicom.multival import MultiValue

from ..config.schema import ConfigSchema
from ..io.dcmdump import parse_dump_output, run_dcmdump
from ..models import REFERENCE_KEYWORDS, AttributeStatus, DumpValue, ReferenceAttributes
from ..utils.errors import AttributeExtractionError

log = structlog.get_logger()


class ReferenceReader(Protocol):
    """Anything that can look up one attribute in a DICOM file."""

    def read(self, path: Path, keyword: str) -> DumpValue:  # pragma: no cover - protocol
        ...


class DcmdumpReader:
    """Look attributes up by running DCMTK ``dcmdump``."""

    def __init__(
        self,
        exe: str = "dcmdump",
        flags: Sequence[str] = ("+L",),
        timeout: Optional[float] = None,
    ) -> None:
        self.exe = exe
        self.flags = tuple(flags)
        self.timeout = timeout

    def read(self, path: Path, keyword: str) -> DumpValue:
        output = run_dcmdump(
            path, keyword, exe=self.exe, flags=self.flags, timeout=self.timeout
        )
        return parse_dump_output(output, keyword)


def _format_value(value) -> str:
    """Render an element value the way it appears in a DICOM string."""
    if isinstance(value, MultiValue):
        return "\\".join(str(v) for v in value)
    if isinstance(value, bytes):
        return value.decode("ascii", errors="replace")
    return str(value)


class PydicomReader:
    """Look attributes up in a dataset parsed once with *pydicom*."""

    def __init__(self) -> None:
        self._datasets: Dict[Path, Dataset] = {}

    def _dataset(self, path: Path) -> Dataset:
        key = Path(path).resolve()
        if key not in self._datasets:
            try:
                self._datasets[key] = pydicom.dcmread(key, stop_before_pixels=True)
            except (InvalidDicomError, OSError) as exc:
                raise AttributeExtractionError(
                    f"Could not read reference DICOM file {path}: {exc}"
                ) from exc
        return self._datasets[key]

    def read(self, path: Path, keyword: str) -> DumpValue:
        ds = self._dataset(path)
        if keyword not in ds:
            return DumpValue(keyword, AttributeStatus.MISSING)

        value = ds.data_element(keyword).value
        if value is None or value == "" or (isinstance(value, MultiValue) and len(value) == 0):
            return DumpValue(keyword, AttributeStatus.EMPTY)

        text = _format_value(value)
        if text == "":
            return DumpValue(keyword, AttributeStatus.EMPTY)
        return DumpValue(keyword, AttributeStatus.PRESENT, text)


def make_reader(cfg: ConfigSchema) -> ReferenceReader:
    """Return the reader selected by ``reference.reader``."""
    if cfg.reference.reader == "pydicom":
        return PydicomReader()
    return DcmdumpReader(
        exe=cfg.tools.dcmdump,
        flags=cfg.tools.dcmdump_flags,
        timeout=cfg.tools.timeout,
    )


def extract_reference_attributes(
    ref: Path,
    reader: ReferenceReader,
    keywords: Iterable[str] = REFERENCE_KEYWORDS,
    *,
    on_missing: str = "empty",
) -> ReferenceAttributes:
    """Query every keyword once, in order, and collect the results.

    Args:
        ref: Reference DICOM file.
        reader: Lookup backend.
        keywords: Attribute keywords to read.
        on_missing: ``"empty"`` turns missing or unparsable attributes into
            ``""`` with a warning; ``"error"`` raises instead.

    Returns:
        ReferenceAttributes: Read-only keyword to value mapping.

    Raises:
        AttributeExtractionError: In ``"error"`` mode, for the first missing
            or malformed attribute.
    """
    results = []
    for keyword in keywords:
        item = reader.read(ref, keyword)
        if item.status in (AttributeStatus.MISSING, AttributeStatus.MALFORMED):
            if on_missing == "error":
                raise AttributeExtractionError(
                    f"{keyword} is {item.status.value} in reference file {ref}"
                )
            # Absent optional attributes are routine; unparsable output is not.
            emit = log.warning if item.status is AttributeStatus.MALFORMED else log.info
            emit(
                "reference.attribute_unavailable",
                keyword=keyword,
                status=item.status.value,
            )
            item = DumpValue(keyword, item.status, "")
        log.debug("reference.attribute", keyword=keyword, status=item.status.value, value=item.value)
        results.append(item)
    return ReferenceAttributes.from_dump_values(results)
