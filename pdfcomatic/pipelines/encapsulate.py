"""Wrap a PDF into a DICOM Encapsulated PDF object.

Stages, strictly in order:

1. :func:`validate_invocation` – pre-flight checks, no external calls;
2. :func:`~pdfcomatic.pipelines.reference.extract_reference_attributes`;
3. :func:`derive_values` – one clock reading plus the issuer-of-patient-ID;
4. :func:`build_overrides` and ``pdf2dcm``.

The first failure raises and ends the run.  Nothing is retried and nothing
is cleaned up; a partial output file is ``pdf2dcm``'s responsibility.
"""

from __future__ import annotations

import os
import re
from datetime import datetime
from typing import List, Mapping, Optional, Tuple

import structlog

from ..config.schema import ConfigSchema, EquipmentConfig
from ..io.pdf2dcm import build_pdf2dcm_cmd, resolve_executable, run_pdf2dcm
from ..models import DerivedValues, EncapsulationResult, InvocationArgs, ReferenceAttributes
from ..utils.errors import ValidationError
from .reference import ReferenceReader, extract_reference_attributes, make_reader

log = structlog.get_logger()

ISSUER_ENV = "PDF2DCM_ISSUEROFPATIENTID_ENV"
DEFAULT_ISSUER = "AAA"

_SERIES_RE = re.compile(r"[0-9]+")


# ─────────────────────────────────────────────────────────────────────────────
# 1. Validation
# ─────────────────────────────────────────────────────────────────────────────
def validate_series_number(value: str) -> str:
    """Return *value* unchanged if it is an unsigned decimal integer.

    Raises:
        ValidationError: For anything else (``"12a"``, ``"-5"``, ``""``, ``"3.5"``).
    """
    if not _SERIES_RE.fullmatch(value):
        raise ValidationError(
            f"Series number must be a non-negative integer, got '{value}'"
        )
    return value


def validate_invocation(args: InvocationArgs) -> None:
    """Check the inputs before any external program runs.

    Raises:
        ValidationError: When the reference file or the input PDF does not
            exist, or the series number is not an unsigned integer.
    """
    if not args.dcm_ref.is_file():
        raise ValidationError(f"Reference DICOM file not found: {args.dcm_ref}")
    validate_series_number(args.series_num)
    if not args.pdf_in.is_file():
        raise ValidationError(f"Input PDF not found: {args.pdf_in}")


# ─────────────────────────────────────────────────────────────────────────────
# 2. Derived values
# ─────────────────────────────────────────────────────────────────────────────
def derive_values(
    now: Optional[datetime] = None,
    environ: Optional[Mapping[str, str]] = None,
    default_issuer: str = DEFAULT_ISSUER,
) -> DerivedValues:
    """Compute the date/time stamps and the issuer-of-patient-ID.

    Args:
        now: Clock reading; defaults to :meth:`datetime.now`.
        environ: Environment mapping; defaults to :data:`os.environ`.
        default_issuer: Used when ``$PDF2DCM_ISSUEROFPATIENTID_ENV`` is unset
            or empty.

    Returns:
        DerivedValues: Values shared by every override of this run.
    """
    now = now or datetime.now()
    env = os.environ if environ is None else environ
    date = now.strftime("%Y%m%d")
    time = now.strftime("%H%M%S")
    return DerivedValues(
        date=date,
        time=time,
        datetime=date + time,
        issuer_of_patient_id=env.get(ISSUER_ENV) or default_issuer,
    )


# ─────────────────────────────────────────────────────────────────────────────
# 3. Overrides
# ─────────────────────────────────────────────────────────────────────────────
def build_overrides(
    args: InvocationArgs,
    attrs: ReferenceAttributes,
    derived: DerivedValues,
    equipment: EquipmentConfig,
) -> List[Tuple[str, str]]:
    """Return the ordered ``(keyword, value)`` pairs handed to ``pdf2dcm -k``."""
    return [
        ("StudyDate", attrs.get("StudyDate", "")),
        ("StudyTime", attrs.get("StudyTime", "")),
        ("SeriesDate", derived.date),
        ("SeriesTime", derived.time),
        ("ContentDate", derived.date),
        ("ContentTime", derived.time),
        ("AcquisitionDateTime", derived.datetime),
        ("AccessionNumber", attrs.get("AccessionNumber", "")),
        ("Manufacturer", equipment.manufacturer),
        ("ManufacturerModelName", equipment.model_name),
        ("StationName", equipment.station_name),
        ("InstitutionName", attrs.get("InstitutionName", "")),
        ("InstitutionAddress", attrs.get("InstitutionAddress", "")),
        ("ReferringPhysicianName", attrs.get("ReferringPhysicianName", "")),
        ("StudyDescription", attrs.get("StudyDescription", "")),
        ("StudyID", attrs.get("StudyID", "")),
        ("ProtocolName", args.doc_title),
        ("SeriesDescription", args.doc_title),
        ("IssuerOfPatientID", derived.issuer_of_patient_id),
        ("PatientAge", attrs.get("PatientAge", "")),
        ("PatientWeight", attrs.get("PatientWeight", "")),
        ("SeriesNumber", args.series_num),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# 4. Orchestration
# ─────────────────────────────────────────────────────────────────────────────
def encapsulate(
    args: InvocationArgs,
    cfg: ConfigSchema,
    *,
    dry_run: bool = False,
    now: Optional[datetime] = None,
    environ: Optional[Mapping[str, str]] = None,
    reader: Optional[ReferenceReader] = None,
) -> EncapsulationResult:
    """Run the full pipeline for one PDF.

    Args:
        args: Parsed positional arguments.
        cfg: Validated configuration.
        dry_run: Build the ``pdf2dcm`` command but do not execute it.
        now: Clock override for reproducible runs.
        environ: Environment override for the issuer lookup.
        reader: Reference reader; defaults to the configured one.

    Returns:
        EncapsulationResult: Command, inputs, and ``pdf2dcm`` exit status.

    Raises:
        ValidationError: Pre-flight checks failed.
        AttributeExtractionError: Strict mode hit a missing attribute.
        ExternalToolError: ``dcmdump`` or ``pdf2dcm`` failed.
    """
    validate_invocation(args)

    attrs = extract_reference_attributes(
        args.dcm_ref,
        reader or make_reader(cfg),
        on_missing=cfg.reference.on_missing,
    )
    derived = derive_values(now, environ, default_issuer=cfg.issuer_of_patient_id)

    exe = cfg.tools.pdf2dcm if dry_run else resolve_executable(cfg.tools.pdf2dcm)
    cmd = build_pdf2dcm_cmd(
        exe,
        args.pdf_in,
        args.dcm_out,
        title=args.doc_title,
        study_from=args.dcm_ref,
        overrides=build_overrides(args, attrs, derived, cfg.equipment),
        flags=cfg.tools.pdf2dcm_flags,
    )

    if dry_run:
        log.info("encapsulate.dry_run", output=str(args.dcm_out))
        return EncapsulationResult(cmd, attrs, derived)

    returncode = run_pdf2dcm(cmd, timeout=cfg.tools.timeout)
    log.info("encapsulate.done", output=str(args.dcm_out))
    return EncapsulationResult(cmd, attrs, derived, returncode)
