"""
Core data-model declarations for *pdfcomatic*.

Every record here is created once per run and never mutated afterwards:
parsed arguments, the attributes copied from the reference DICOM file, the
clock-derived values, and the final result handed back to the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

# Attributes copied from the reference file, in query order.
REFERENCE_KEYWORDS: Tuple[str, ...] = (
    "StudyDate",
    "StudyTime",
    "AccessionNumber",
    "StudyID",
    "InstitutionName",
    "InstitutionAddress",
    "ReferringPhysicianName",
    "StudyDescription",
    "PatientAge",
    "PatientWeight",
)


class AttributeStatus(str, Enum):
    """Outcome of a single reference-attribute lookup."""

    PRESENT = "present"
    EMPTY = "empty"
    MISSING = "missing"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class DumpValue:
    """Value of one attribute as reported by a reference reader.

    Attributes:
        keyword: DICOM attribute keyword, for example ``StudyDate``.
        status: Whether the attribute carried a value, was empty, was absent,
            or could not be parsed.
        value: Attribute value; always ``""`` unless *status* is ``PRESENT``.
    """

    keyword: str
    status: AttributeStatus
    value: str = ""


@dataclass(frozen=True, slots=True)
class InvocationArgs:
    """The five positional command-line arguments.

    Attributes:
        pdf_in: PDF document to encapsulate.
        dcm_ref: Reference DICOM file that supplies patient/study context.
        dcm_out: Destination of the Encapsulated PDF object.
        doc_title: Document title, also used as protocol name and series
            description.
        series_num: Series number exactly as typed (``"00042"`` stays as is).
    """

    pdf_in: Path
    dcm_ref: Path
    dcm_out: Path
    doc_title: str
    series_num: str


@dataclass(frozen=True)
class ReferenceAttributes(Mapping[str, str]):
    """Read-only mapping of keyword to value copied from the reference file."""

    values: Mapping[str, str]
    statuses: Mapping[str, AttributeStatus] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        object.__setattr__(self, "statuses", MappingProxyType(dict(self.statuses)))

    def __getitem__(self, keyword: str) -> str:
        return self.values[keyword]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    @classmethod
    def from_dump_values(cls, items: List[DumpValue]) -> "ReferenceAttributes":
        """Build the mapping from reader results, preserving order."""
        return cls(
            values={d.keyword: d.value for d in items},
            statuses={d.keyword: d.status for d in items},
        )


@dataclass(frozen=True, slots=True)
class DerivedValues:
    """Values computed at start-up rather than read from the reference.

    Attributes:
        date: Current date as ``YYYYMMDD``.
        time: Current time as ``HHMMSS``.
        datetime: ``date`` followed by ``time``.
        issuer_of_patient_id: Value for ``IssuerOfPatientID``.
    """

    date: str
    time: str
    datetime: str
    issuer_of_patient_id: str


@dataclass(frozen=True, slots=True)
class EncapsulationResult:
    """What a run did.

    Attributes:
        command: Full ``pdf2dcm`` argument vector.
        attributes: Attributes copied from the reference file.
        derived: Clock and environment derived values.
        returncode: Exit status of ``pdf2dcm``; ``None`` for a dry run.
    """

    command: List[str]
    attributes: ReferenceAttributes
    derived: DerivedValues
    returncode: Optional[int] = None
