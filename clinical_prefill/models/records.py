"""Pydantic models for the inputs of the prefill engine.

Clinical records arrive from the on-device health-records reader as a mapping
of four categories to ``{displayName, fhirResource}`` pairs. Demographics come
from the same reader's characteristic queries. Both are untrusted: raw payloads
that are not JSON objects and demographic values of the wrong type are dropped
rather than rejected.
"""

import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class ClinicalRecord(BaseModel):
    """One clinical record: the reader's display label plus the raw FHIR JSON."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    display_name: str = Field(
        "",
        validation_alias=AliasChoices("display_name", "displayName"),
    )
    raw_resource: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices(
            "raw_resource", "fhirResource", "rawResourcePayload", "fhir_resource"
        ),
    )

    @field_validator("display_name", mode="before")
    @classmethod
    def _coerce_display_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("raw_resource", mode="before")
    @classmethod
    def _drop_non_object_payload(cls, v: Any) -> dict[str, Any] | None:
        if v is None or isinstance(v, dict):
            return v
        logger.debug("Dropping non-object FHIR payload of type %s", type(v).__name__)
        return None


class ClinicalRecordsInput(BaseModel):
    """All clinical records available for one onboarding session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    medications: list[ClinicalRecord] = []
    lab_results: list[ClinicalRecord] = Field(
        [],
        validation_alias=AliasChoices("lab_results", "labResults"),
    )
    conditions: list[ClinicalRecord] = []
    procedures: list[ClinicalRecord] = []

    @field_validator("medications", "lab_results", "conditions", "procedures", mode="before")
    @classmethod
    def _coerce_record_list(cls, v: Any) -> list:
        if v is None:
            return []
        if not isinstance(v, list):
            logger.debug("Expected a list of clinical records, got %s", type(v).__name__)
            return []
        return [item for item in v if isinstance(item, (dict, ClinicalRecord))]


class Demographics(BaseModel):
    """Characteristics read directly from the health-data API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    age: int | None = None
    date_of_birth: str | None = Field(
        None,
        validation_alias=AliasChoices("date_of_birth", "dateOfBirth"),
    )
    biological_sex: str | None = Field(
        None,
        validation_alias=AliasChoices("biological_sex", "biologicalSex"),
    )

    @field_validator("age", mode="before")
    @classmethod
    def _drop_unusable_age(cls, v: Any) -> int | None:
        if v is None or (isinstance(v, int) and not isinstance(v, bool)):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        logger.debug("Dropping unusable age value %r", v)
        return None

    @field_validator("date_of_birth", "biological_sex", mode="before")
    @classmethod
    def _drop_non_string(cls, v: Any) -> str | None:
        if v is None or isinstance(v, str):
            return v
        logger.debug("Dropping non-string demographic value of type %s", type(v).__name__)
        return None
