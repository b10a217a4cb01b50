"""Procedure mapper - separates BPH procedures from general surgical history.

BPH procedures are recognised by SNOMED CT procedure code first, then by BPH
surgery keywords in the procedure name (TURP, HoLEP, UroLift, ...). Every other
procedure is kept as general surgical history.
"""

import logging
from itertools import chain

from clinical_prefill.config import PREFILL_SOURCE_TYPE
from clinical_prefill.models.prefill import MappedProcedure, MatchMethod, PrefillSource
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.models.resources import Coding
from clinical_prefill.services.fhir_parser import parse_procedure_record
from clinical_prefill.services.vocabulary import (
    BPH_PROCEDURE_KEYWORDS,
    SNOMED_BPH_PROCEDURE_CODES,
    SNOMED_SYSTEM,
    matches_keyword,
)

logger = logging.getLogger(__name__)


def is_bph_procedure_code(coding: Coding | None) -> bool:
    if coding is None or not coding.code:
        return False
    system = (coding.system or "").lower()
    if system and "snomed" not in system:
        return False
    return coding.code.strip() in SNOMED_BPH_PROCEDURE_CODES


def is_bph_procedure_name(name: str | None) -> bool:
    return matches_keyword(name, BPH_PROCEDURE_KEYWORDS)


def _source(name: str, method: MatchMethod, matched_code: str | None = None) -> PrefillSource:
    return PrefillSource(
        type=PREFILL_SOURCE_TYPE,
        display_name=name,
        match_method=method,
        matched_code=matched_code,
    )


def map_procedures(records: list[ClinicalRecord]) -> list[MappedProcedure]:
    """Map procedure records, BPH procedures first and then the rest in record order."""
    parsed = []
    for i, record in enumerate(records):
        proc = parse_procedure_record(record.raw_resource, record.display_name)
        parsed.append((i, proc.name or record.display_name, proc))

    coded = (
        (i, MappedProcedure(
            name=name,
            date=proc.performed_date,
            is_bph=True,
            source=_source(name, MatchMethod.CODE, f"{SNOMED_SYSTEM}|{proc.code.code.strip()}"),
        ))
        for i, name, proc in parsed
        if is_bph_procedure_code(proc.code)
    )
    by_text = (
        (i, MappedProcedure(
            name=name,
            date=proc.performed_date,
            is_bph=True,
            source=_source(name, MatchMethod.TEXT),
        ))
        for i, name, proc in parsed
        if not is_bph_procedure_code(proc.code) and is_bph_procedure_name(name)
    )
    bph = list(chain(coded, by_text))
    bph_indexes = {i for i, _ in bph}

    mapped = [proc for _, proc in bph]
    for i, name, proc in parsed:
        if i in bph_indexes:
            continue
        if proc.code is not None and proc.code.code:
            source = _source(
                name, MatchMethod.CODE, f"{proc.code.system or 'unknown'}|{proc.code.code}",
            )
        else:
            source = _source(name, MatchMethod.TEXT)
        mapped.append(MappedProcedure(
            name=name, date=proc.performed_date, is_bph=False, source=source,
        ))

    logger.debug(
        "Mapped %d procedure records (%d BPH-related)", len(records), len(bph_indexes),
    )
    return mapped


def separate_procedures(
    procedures: list[MappedProcedure],
) -> tuple[list[MappedProcedure], list[MappedProcedure]]:
    """Split mapped procedures into (BPH procedures, other procedures)."""
    bph_procedures = [p for p in procedures if p.is_bph]
    other_procedures = [p for p in procedures if not p.is_bph]
    return bph_procedures, other_procedures
