"""Medication classifier - sorts clinical medication records into BPH drug classes.

A coded medication (RxNorm or similar) whose coding display names a known drug
is a code match; otherwise the medication name is matched against the generic
and brand names of the drug dictionary. Medications that match neither are
not BPH drugs and are left out of the result.
"""

import logging
import re

from clinical_prefill.config import PREFILL_SOURCE_TYPE
from clinical_prefill.models.prefill import (
    ClassifiedMedication,
    DrugClass,
    MatchMethod,
    PrefillSource,
)
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.models.resources import NormalizedMedication
from clinical_prefill.services.fhir_parser import parse_medication_record
from clinical_prefill.services.matching import first_match
from clinical_prefill.services.vocabulary import DrugEntry, lookup_drug

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z0-9]+")

# Bucket order used by the prefill builder
DRUG_CLASS_GROUPS = (
    DrugClass.ALPHA_BLOCKER,
    DrugClass.FIVE_ARI,
    DrugClass.ANTICHOLINERGIC,
    DrugClass.BETA3_AGONIST,
    DrugClass.OTHER_BPH,
)


def match_drug_name(name: str | None) -> DrugEntry | None:
    """Look up a medication name, whole first and then word by word.

    "Flomax" and "TAMSULOSIN" match directly; "tamsulosin 0.4 mg oral capsule"
    matches on its first word.
    """
    if not name:
        return None
    return first_match(
        (lookup_drug(name),),
        (lookup_drug(word) for word in _WORD.findall(name.lower())),
    )


def _classified(
    med_name: str, drug: DrugEntry, method: MatchMethod, matched_code: str | None = None,
) -> ClassifiedMedication:
    return ClassifiedMedication(
        name=med_name,
        generic_name=drug.generic,
        drug_class=drug.drug_class,
        source=PrefillSource(
            type=PREFILL_SOURCE_TYPE,
            display_name=med_name,
            match_method=method,
            matched_code=matched_code,
        ),
    )


def _match_by_code(med: NormalizedMedication, med_name: str) -> ClassifiedMedication | None:
    if med.code is None or not med.code.code:
        return None
    drug = match_drug_name(med.code.display)
    if drug is None:
        return None
    matched_code = f"{med.code.system or 'unknown'}|{med.code.code}"
    return _classified(med_name, drug, MatchMethod.CODE, matched_code)


def _match_by_text(med_name: str) -> ClassifiedMedication | None:
    drug = match_drug_name(med_name)
    if drug is None:
        return None
    return _classified(med_name, drug, MatchMethod.TEXT)


def classify_medication(record: ClinicalRecord) -> ClassifiedMedication | None:
    """Classify one medication record, or None if it is not a BPH drug."""
    med = parse_medication_record(record.raw_resource, record.display_name)
    med_name = med.name or record.display_name
    return first_match(
        (_match_by_code(med, med_name),),
        (_match_by_text(name) for name in (med_name, record.display_name) if name),
    )


def classify_medications(records: list[ClinicalRecord]) -> list[ClassifiedMedication]:
    """Classify medication records; unrecognised medications are omitted."""
    classified = []
    for record in records:
        med = classify_medication(record)
        if med is None:
            logger.debug("Medication %r is not a BPH drug", record.display_name)
            continue
        classified.append(med)
    return classified


def group_by_drug_class(
    medications: list[ClassifiedMedication],
) -> dict[DrugClass, list[ClassifiedMedication]]:
    """Partition classified medications into the five BPH drug-class buckets."""
    groups: dict[DrugClass, list[ClassifiedMedication]] = {cls: [] for cls in DRUG_CLASS_GROUPS}
    for med in medications:
        if med.drug_class in groups:
            groups[med.drug_class].append(med)
    return groups
