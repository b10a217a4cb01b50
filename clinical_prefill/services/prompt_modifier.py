"""Prompt modifier - turns a prefill into guidance for the medical history chatbot.

The chatbot is told what is already known from health records (to confirm
briefly) and what it still has to collect, so it only asks about gaps.
"""

from typing import NamedTuple

from clinical_prefill.config import STUDY_INSTITUTION, STUDY_NAME
from clinical_prefill.models.prefill import MedicalHistoryPrefill
from clinical_prefill.services.prefill_builder import (
    get_known_fields_summary,
    get_missing_fields,
)


class StudyInfo(NamedTuple):
    name: str
    institution: str


DEFAULT_STUDY = StudyInfo(name=STUDY_NAME, institution=STUDY_INSTITUTION)

NO_RECORDS_PLACEHOLDER = "(No health records data available)"

FIELD_DESCRIPTIONS = {
    "fullName": "Full name (for study records)",
    "ethnicity": "Ethnicity (Hispanic/Latino or Not)",
    "race": "Race",
    "age": "Age / Date of Birth",
    "biologicalSex": "Biological Sex",
    "medications": (
        "BPH/LUTS Medications (alpha blockers, 5-ARIs, anticholinergics, beta-3 agonists)"
    ),
    "surgicalHistory": "Surgical History (BPH and general)",
    "psa": "PSA level (most recent)",
    "hba1c": "HbA1c level",
    "urinalysis": "Urinalysis results",
    "conditions": "Medical conditions (diabetes, hypertension, etc.)",
    "clinicalMeasurements": "Clinical measurements (PVR, clinic uroflow, mobility)",
    "upcomingSurgery": "Upcoming surgery details (date and type)",
}

PROMPT_TEMPLATE = """You are a friendly research assistant collecting medical history for the {study_name} study at {institution}. The participant has already been confirmed eligible and has given informed consent.

## Pre-filled Data from Health Records

We already have the following information from the participant's Apple Health records. You do NOT need to ask about these, but you may briefly confirm them:

{known_section}

## What You Still Need to Collect

Focus your questions on these missing fields:
{missing_section}

## Conversation Guidelines
- Be warm, conversational, and empathetic
- Start by briefly acknowledging what we already know from their health records
- Ask 2-3 related items at a time, don't overwhelm
- Group questions logically
- If they don't know a value (like PSA or HbA1c), that's OK - note "unknown" and continue
- NEVER give medical advice or interpret their values

## Important Response Markers
When ALL medical history sections are complete: [HISTORY_COMPLETE]

## Start the Conversation
"Thanks for completing the consent process! I can see some of your health information has already been pulled from your Apple Health records{known_brief}. I just need to ask about a few more things to complete your medical history.

Let's start with some basic demographics - could you tell me your full name?\""""


def summarize_known_briefly(known: list[str]) -> str:
    """Join up to two items with "and", otherwise list two and count the rest."""
    if not known:
        return ""
    if len(known) <= 2:
        return " and ".join(known)
    rest = len(known) - 2
    return f"{', '.join(known[:2])}, and {rest} more item{'s' if rest > 1 else ''}"


def build_modified_system_prompt(
    prefill: MedicalHistoryPrefill,
    study: StudyInfo | None = None,
) -> str:
    """Build the chatbot system prompt incorporating known health record data."""
    study = study or DEFAULT_STUDY
    known = get_known_fields_summary(prefill)
    missing = get_missing_fields(prefill)

    if known:
        known_section = "\n".join(f"- {item}" for item in known)
        known_brief = f" - I have your {summarize_known_briefly(known)}"
    else:
        known_section = NO_RECORDS_PLACEHOLDER
        known_brief = ""

    missing_section = "\n".join(
        f"- {FIELD_DESCRIPTIONS.get(field, field)}" for field in missing
    )

    return PROMPT_TEMPLATE.format(
        study_name=study.name,
        institution=study.institution,
        known_section=known_section,
        missing_section=missing_section,
        known_brief=known_brief,
    )
