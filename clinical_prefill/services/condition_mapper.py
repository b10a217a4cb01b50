"""Condition mapper - maps clinical condition records to study categories.

Categories are diabetes, hypertension and BPH, plus ``other`` for everything
else. Each category takes its coded records (SNOMED CT exact codes, ICD-10
prefixes) first, then the records without a coded match whose names contain one
of its keywords. A record can land in several categories through keywords, and
lands in ``other`` only when it matches none.
"""

import logging
from itertools import chain

from clinical_prefill.config import PREFILL_SOURCE_TYPE
from clinical_prefill.models.prefill import (
    ConditionCategory,
    MappedCondition,
    MatchMethod,
    PrefillSource,
)
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.models.resources import Coding
from clinical_prefill.services.fhir_parser import parse_condition_record
from clinical_prefill.services.vocabulary import (
    CONDITION_KEYWORDS,
    ICD10_CONDITION_PREFIXES,
    ICD10_SYSTEM,
    SNOMED_CONDITION_CODES,
    SNOMED_SYSTEM,
    matches_keyword,
)

logger = logging.getLogger(__name__)

TARGET_CATEGORIES = (
    ConditionCategory.DIABETES,
    ConditionCategory.HYPERTENSION,
    ConditionCategory.BPH,
)


def match_code_to_category(coding: Coding | None) -> tuple[ConditionCategory, str] | None:
    """Map a coding to a target category and its ``"<system>|<code>"`` label.

    SNOMED CT codes match exactly, ICD-10 codes by prefix. A coding without a
    system is tried against both.
    """
    if coding is None or not coding.code:
        return None
    code = coding.code.strip()
    system = (coding.system or "").lower()
    is_snomed = "snomed" in system
    is_icd = "icd" in system

    if is_snomed or not system:
        category = SNOMED_CONDITION_CODES.get(code)
        if category is not None:
            return category, f"{SNOMED_SYSTEM}|{code}"

    if is_icd or not system:
        upper = code.upper()
        for category, prefixes in ICD10_CONDITION_PREFIXES.items():
            if upper.startswith(prefixes):
                return category, f"{ICD10_SYSTEM}|{code}"

    return None


def _source(name: str, method: MatchMethod, matched_code: str | None = None) -> PrefillSource:
    return PrefillSource(
        type=PREFILL_SOURCE_TYPE,
        display_name=name,
        match_method=method,
        matched_code=matched_code,
    )


def _coded_pass(candidates, category):
    for i, name, _, match in candidates:
        if match is not None and match[0] == category:
            yield i, MappedCondition(
                name=name, category=category, source=_source(name, MatchMethod.CODE, match[1]),
            )


def _text_pass(candidates, category):
    keywords = CONDITION_KEYWORDS[category]
    for i, name, _, match in candidates:
        if match is None and matches_keyword(name, keywords):
            yield i, MappedCondition(
                name=name, category=category, source=_source(name, MatchMethod.TEXT),
            )


def map_conditions(records: list[ClinicalRecord]) -> list[MappedCondition]:
    """Map condition records to categories, target categories first, then ``other``."""
    candidates = []
    for i, record in enumerate(records):
        cond = parse_condition_record(record.raw_resource, record.display_name)
        candidates.append(
            (i, cond.name or record.display_name, cond.code, match_code_to_category(cond.code))
        )

    mapped: list[MappedCondition] = []
    assigned: set[int] = set()
    for category in TARGET_CATEGORIES:
        # Keyword matches stay in their category even once a coded record covers it
        for i, condition in chain(
            _coded_pass(candidates, category),
            _text_pass(candidates, category),
        ):
            assigned.add(i)
            mapped.append(condition)

    for i, name, coding, _ in candidates:
        if i in assigned:
            continue
        if coding is not None and coding.code:
            source = _source(name, MatchMethod.CODE, f"{coding.system or 'unknown'}|{coding.code}")
        else:
            source = _source(name, MatchMethod.TEXT)
        mapped.append(MappedCondition(name=name, category=ConditionCategory.OTHER, source=source))

    logger.debug("Mapped %d condition records into %d entries", len(records), len(mapped))
    return mapped


def group_by_category(
    conditions: list[MappedCondition],
) -> dict[ConditionCategory, list[MappedCondition]]:
    """Partition mapped conditions into diabetes, hypertension, BPH and other."""
    groups: dict[ConditionCategory, list[MappedCondition]] = {c: [] for c in ConditionCategory}
    for cond in conditions:
        groups[cond.category].append(cond)
    return groups
