"""Prefill builder - combines clinical records and demographics into one prefill.

Takes whatever the health-records reader returned for an onboarding session
(possibly nothing at all) plus the directly measured demographics, runs the
classifiers and extractors, and builds a ``MedicalHistoryPrefill`` with a
confidence label on every field. Also answers which fields the medical
history chatbot still has to ask about.
"""

import logging

from clinical_prefill.config import DEMOGRAPHICS_SOURCE_TYPE
from clinical_prefill.models.prefill import (
    ClassifiedMedication,
    ConditionCategory,
    ConditionGroup,
    ConditionsPrefill,
    Confidence,
    DemographicsPrefill,
    DrugClass,
    LabsPrefill,
    MappedCondition,
    MappedProcedure,
    MatchMethod,
    MedicalHistoryPrefill,
    MedicationGroup,
    MedicationsPrefill,
    PrefillEntry,
    PrefillSource,
    ProcedureGroup,
    SurgicalHistoryPrefill,
)
from clinical_prefill.models.records import ClinicalRecordsInput, Demographics
from clinical_prefill.services.condition_mapper import group_by_category, map_conditions
from clinical_prefill.services.fhir_parser import format_number
from clinical_prefill.services.lab_extractor import (
    extract_hba1c,
    extract_psa,
    extract_urinalysis,
)
from clinical_prefill.services.medication_classifier import (
    classify_medications,
    group_by_drug_class,
)
from clinical_prefill.services.procedure_mapper import map_procedures, separate_procedures

logger = logging.getLogger(__name__)

# Never derivable from structured records, so always asked in conversation
ALWAYS_ASKED_DEMOGRAPHICS = ("fullName", "ethnicity", "race")
ALWAYS_ASKED_TRAILING = ("clinicalMeasurements", "upcomingSurgery")


# --- Entry construction ---


def _group_entry(
    entry_type: type[PrefillEntry],
    items: list[ClassifiedMedication | MappedCondition | MappedProcedure],
) -> PrefillEntry:
    """``none`` when empty, ``high`` with any code match, ``medium`` otherwise."""
    if not items:
        return entry_type()
    has_code_match = any(item.source.match_method == MatchMethod.CODE for item in items)
    return entry_type(
        value=list(items),
        confidence=Confidence.HIGH if has_code_match else Confidence.MEDIUM,
        sources=[item.source for item in items],
    )


def _demographic_entry(value, label: str, entry_type: type[PrefillEntry]) -> PrefillEntry:
    if value is None or value == "":
        return entry_type()
    return entry_type(
        value=value,
        confidence=Confidence.HIGH,
        sources=[PrefillSource(
            type=DEMOGRAPHICS_SOURCE_TYPE,
            display_name=f"{label}: {value}",
            match_method=MatchMethod.DIRECT_API,
        )],
    )


def _build_demographics(demographics: Demographics | None) -> DemographicsPrefill:
    if demographics is None:
        return DemographicsPrefill()
    return DemographicsPrefill(
        age=_demographic_entry(demographics.age, "Age", PrefillEntry[int]),
        biological_sex=_demographic_entry(
            demographics.biological_sex, "Sex", PrefillEntry[str]
        ),
    )


# --- Public API ---


def build_medical_history_prefill(
    clinical_records: ClinicalRecordsInput | dict | None,
    demographics: Demographics | dict | None,
) -> MedicalHistoryPrefill:
    """Build the medical history prefill from clinical records and demographics.

    Either input may be None (records unavailable, permission denied, ...);
    the corresponding sections are then left empty with confidence ``none``.
    Plain dicts in the reader's camelCase shape are accepted as well.
    """
    if isinstance(clinical_records, dict):
        clinical_records = ClinicalRecordsInput.model_validate(clinical_records)
    if isinstance(demographics, dict):
        demographics = Demographics.model_validate(demographics)

    records = clinical_records or ClinicalRecordsInput()

    med_groups = group_by_drug_class(classify_medications(records.medications))
    cond_groups = group_by_category(map_conditions(records.conditions))
    bph_procedures, other_procedures = separate_procedures(map_procedures(records.procedures))

    prefill = MedicalHistoryPrefill(
        demographics=_build_demographics(demographics),
        medications=MedicationsPrefill(
            alpha_blockers=_group_entry(MedicationGroup, med_groups[DrugClass.ALPHA_BLOCKER]),
            five_aris=_group_entry(MedicationGroup, med_groups[DrugClass.FIVE_ARI]),
            anticholinergics=_group_entry(MedicationGroup, med_groups[DrugClass.ANTICHOLINERGIC]),
            beta3_agonists=_group_entry(MedicationGroup, med_groups[DrugClass.BETA3_AGONIST]),
            other_bph=_group_entry(MedicationGroup, med_groups[DrugClass.OTHER_BPH]),
        ),
        surgical_history=SurgicalHistoryPrefill(
            bph_procedures=_group_entry(ProcedureGroup, bph_procedures),
            other_procedures=_group_entry(ProcedureGroup, other_procedures),
        ),
        labs=LabsPrefill(
            psa=extract_psa(records.lab_results),
            hba1c=extract_hba1c(records.lab_results),
            urinalysis=extract_urinalysis(records.lab_results),
        ),
        conditions=ConditionsPrefill(
            diabetes=_group_entry(ConditionGroup, cond_groups[ConditionCategory.DIABETES]),
            hypertension=_group_entry(ConditionGroup, cond_groups[ConditionCategory.HYPERTENSION]),
            bph=_group_entry(ConditionGroup, cond_groups[ConditionCategory.BPH]),
            other=_group_entry(ConditionGroup, cond_groups[ConditionCategory.OTHER]),
        ),
    )

    logger.info(
        "Built medical history prefill: %d known fields, %d missing",
        len(get_known_fields_summary(prefill)),
        len(get_missing_fields(prefill)),
    )
    return prefill


def is_fully_prefilled(prefill: MedicalHistoryPrefill) -> bool:
    """Whether the medical data sections are covered by health records.

    Requires age and biological sex plus at least one medication group and
    one condition group with data. Full name, ethnicity, race, clinical
    measurements and upcoming surgery are not considered: they are always
    asked, so a True result does not mean the chatbot has nothing to ask.
    """
    demographics = prefill.demographics
    if not demographics.age.is_known or not demographics.biological_sex.is_known:
        return False
    has_med_data = any(entry.is_known for entry in prefill.medications.groups())
    has_condition_data = any(entry.is_known for entry in prefill.conditions.groups())
    return has_med_data and has_condition_data


def get_missing_fields(prefill: MedicalHistoryPrefill) -> list[str]:
    """Fields the chatbot still needs to ask about, in conversation order."""
    missing = list(ALWAYS_ASKED_DEMOGRAPHICS)

    if not prefill.demographics.age.is_known:
        missing.append("age")
    if not prefill.demographics.biological_sex.is_known:
        missing.append("biologicalSex")

    if not any(entry.is_known for entry in prefill.medications.groups()):
        missing.append("medications")

    surgical = prefill.surgical_history
    if not surgical.bph_procedures.is_known and not surgical.other_procedures.is_known:
        missing.append("surgicalHistory")

    if not prefill.labs.psa.is_known:
        missing.append("psa")
    if not prefill.labs.hba1c.is_known:
        missing.append("hba1c")
    if not prefill.labs.urinalysis.is_known:
        missing.append("urinalysis")

    if not any(entry.is_known for entry in prefill.conditions.groups()):
        missing.append("conditions")

    missing.extend(ALWAYS_ASKED_TRAILING)
    return missing


def get_known_fields_summary(prefill: MedicalHistoryPrefill) -> list[str]:
    """One human-readable line per field already known from health data."""
    known = []

    demographics = prefill.demographics
    if demographics.age.is_known:
        known.append(f"Age: {demographics.age.value}")
    if demographics.biological_sex.is_known:
        known.append(f"Biological sex: {demographics.biological_sex.value}")

    meds = prefill.medications
    for label, entry in (
        ("Alpha blockers", meds.alpha_blockers),
        ("5-ARIs", meds.five_aris),
        ("Anticholinergics", meds.anticholinergics),
        ("Beta-3 agonists", meds.beta3_agonists),
        ("Other BPH meds", meds.other_bph),
    ):
        if entry.is_known:
            known.append(f"{label}: {', '.join(m.name for m in entry.value)}")

    conditions = prefill.conditions
    for label, entry in (
        ("Diabetes", conditions.diabetes),
        ("Hypertension", conditions.hypertension),
        ("BPH", conditions.bph),
    ):
        if entry.is_known:
            known.append(f"{label}: Yes (from health records)")
    if conditions.other.is_known:
        known.append(f"Other conditions: {len(conditions.other.value)} found")

    labs = prefill.labs
    if labs.psa.is_known:
        known.append(f"PSA: {format_number(labs.psa.value.value)} {labs.psa.value.unit}".rstrip())
    if labs.hba1c.is_known:
        known.append(f"HbA1c: {format_number(labs.hba1c.value.value)}{labs.hba1c.value.unit}")
    if labs.urinalysis.is_known:
        urinalysis = labs.urinalysis.value
        known.append(f"Urinalysis: {format_number(urinalysis.value)} {urinalysis.unit}".rstrip())

    surgical = prefill.surgical_history
    if surgical.bph_procedures.is_known:
        names = ", ".join(p.name for p in surgical.bph_procedures.value)
        known.append(f"BPH procedures: {names}")
    if surgical.other_procedures.is_known:
        known.append(f"Other surgeries: {len(surgical.other_procedures.value)} found")

    return known
