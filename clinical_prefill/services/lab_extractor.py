"""Lab value extractor - PSA, HbA1c and urinalysis from FHIR Observations.

LOINC code matches are tried first and give ``high`` confidence; display-name
keyword matches are the fallback and give ``medium``. A matching record only
counts if it carries a numeric value, otherwise scanning moves on.
"""

import logging

from clinical_prefill.config import PREFILL_SOURCE_TYPE
from clinical_prefill.models.prefill import (
    Confidence,
    LabEntry,
    LabValue,
    MatchMethod,
    PrefillSource,
)
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.models.resources import NormalizedObservation
from clinical_prefill.services.fhir_parser import parse_observation_record
from clinical_prefill.services.matching import first_match
from clinical_prefill.services.vocabulary import (
    LAB_KEYWORDS,
    LOINC_HBA1C,
    LOINC_PSA,
    LOINC_SYSTEM,
    LOINC_URINALYSIS_PANEL,
    matches_keyword,
)

logger = logging.getLogger(__name__)


def _to_lab_value(obs: NormalizedObservation) -> LabValue | None:
    if obs.value is None:
        return None
    return LabValue(
        value=obs.value,
        unit=obs.unit or "",
        date=obs.effective_date or "",
        reference_range=obs.reference_range,
    )


def _build_entry(
    obs: NormalizedObservation,
    display_name: str,
    method: MatchMethod,
    matched_code: str | None = None,
) -> LabEntry | None:
    lab_value = _to_lab_value(obs)
    if lab_value is None:
        logger.debug("Lab record %r matched but has no numeric value", display_name)
        return None
    return LabEntry(
        value=lab_value,
        confidence=Confidence.HIGH if method == MatchMethod.CODE else Confidence.MEDIUM,
        sources=[PrefillSource(
            type=PREFILL_SOURCE_TYPE,
            display_name=display_name,
            match_method=method,
            matched_code=matched_code,
        )],
    )


def _lab_name(record: ClinicalRecord, obs: NormalizedObservation) -> str:
    if record.display_name:
        return record.display_name
    return (obs.code.display if obs.code else None) or ""


def _extract_lab(
    records: list[ClinicalRecord],
    loinc_code: str,
    keywords: tuple[str, ...],
) -> LabEntry:
    parsed = []
    for record in records:
        obs = parse_observation_record(record.raw_resource, record.display_name)
        parsed.append((_lab_name(record, obs), obs))
    by_code = (
        _build_entry(obs, name, MatchMethod.CODE, f"{LOINC_SYSTEM}|{loinc_code}")
        for name, obs in parsed
        if obs.code is not None and obs.code.code == loinc_code
    )
    by_text = (
        _build_entry(obs, name, MatchMethod.TEXT)
        for name, obs in parsed
        if matches_keyword(name, keywords)
    )
    entry = first_match(by_code, by_text)
    return entry if entry is not None else LabEntry()


def extract_psa(records: list[ClinicalRecord]) -> LabEntry:
    return _extract_lab(records, LOINC_PSA, LAB_KEYWORDS["psa"])


def extract_hba1c(records: list[ClinicalRecord]) -> LabEntry:
    return _extract_lab(records, LOINC_HBA1C, LAB_KEYWORDS["hba1c"])


def extract_urinalysis(records: list[ClinicalRecord]) -> LabEntry:
    return _extract_lab(records, LOINC_URINALYSIS_PANEL, LAB_KEYWORDS["urinalysis"])
