"""
Pydantic models that mirror the YAML configuration consumed by *pdfcomatic*.

Unknown keys are rejected so a misspelt setting fails loudly instead of
silently falling back to a default.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ToolsConfig(_Frozen):
    """External DCMTK programs and their fixed flags."""

    dcmdump: str = Field("dcmdump", description="dcmdump executable or path")
    pdf2dcm: str = Field("pdf2dcm", description="pdf2dcm executable or path")
    dcmdump_flags: List[str] = Field(default_factory=lambda: ["+L"])
    pdf2dcm_flags: List[str] = Field(default_factory=list)
    timeout: Optional[float] = Field(None, gt=0, description="Seconds per call")

    @field_validator("dcmdump", "pdf2dcm")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("executable must not be blank")
        return value


class ReferenceConfig(_Frozen):
    """How attributes are read from the reference DICOM file."""

    reader: Literal["dcmdump", "pydicom"] = "dcmdump"
    on_missing: Literal["empty", "error"] = "empty"


class EquipmentConfig(_Frozen):
    """Constant equipment attributes stamped on every output object."""

    manufacturer: str = "pdfcomatic"
    model_name: str = "pdf2dcm"
    station_name: str = "PDF2DCM"


class ConfigSchema(_Frozen):
    """Root of the validated configuration tree."""

    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    reference: ReferenceConfig = Field(default_factory=ReferenceConfig)
    equipment: EquipmentConfig = Field(default_factory=EquipmentConfig)
    issuer_of_patient_id: str = "AAA"
