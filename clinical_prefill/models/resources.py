"""Canonical FHIR resource shapes produced by the parser.

DSTU2 and R4 payloads converge here, so classifiers never need to know which
schema generation a record came from.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class Coding(BaseModel):
    """Primary coding of a CodeableConcept (or its text, when uncoded)."""

    model_config = ConfigDict(frozen=True)

    system: str | None = None
    code: str | None = None
    display: str | None = None


class NormalizedMedication(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_type: Literal["MedicationOrder", "MedicationRequest", "MedicationStatement"]
    name: str = ""
    code: Coding | None = None
    status: str | None = None
    date_written: str | None = None


class NormalizedObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_type: Literal["Observation"] = "Observation"
    code: Coding | None = None
    value: int | float | None = None
    unit: str | None = None
    value_string: str | None = None
    effective_date: str | None = None
    status: str | None = None
    reference_range: str | None = None


class NormalizedCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_type: Literal["Condition"] = "Condition"
    name: str = ""
    code: Coding | None = None
    clinical_status: str | None = None
    onset_date: str | None = None


class NormalizedProcedure(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_type: Literal["Procedure"] = "Procedure"
    name: str = ""
    code: Coding | None = None
    status: str | None = None
    performed_date: str | None = None


NormalizedResource = (
    NormalizedMedication | NormalizedObservation | NormalizedCondition | NormalizedProcedure
)
