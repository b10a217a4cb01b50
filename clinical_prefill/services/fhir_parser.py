"""FHIR parser for Apple Health clinical records.

Normalizes raw FHIR JSON into the canonical resource models. Handles DSTU2
(MedicationOrder, string clinicalStatus) and R4 (MedicationRequest,
CodeableConcept clinicalStatus) payloads, single resources and Bundles.

Malformed or partial input never raises: missing fields become None and
unrecognised resources are dropped.
"""

import logging
import re
from typing import Any

from clinical_prefill.models.resources import (
    Coding,
    NormalizedCondition,
    NormalizedMedication,
    NormalizedObservation,
    NormalizedProcedure,
    NormalizedResource,
)

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

MEDICATION_RESOURCE_TYPES = ("MedicationOrder", "MedicationRequest", "MedicationStatement")

# Field precedence per resource kind: explicit date-time, then period, then recorded date
MEDICATION_DATE_FIELDS = (
    "dateWritten", "authoredOn", "effectiveDateTime", "effectivePeriod", "dateAsserted",
)
OBSERVATION_DATE_FIELDS = ("effectiveDateTime", "effectivePeriod", "issued")
CONDITION_DATE_FIELDS = ("onsetDateTime", "onsetPeriod", "recordedDate", "dateRecorded")
PROCEDURE_DATE_FIELDS = ("performedDateTime", "performedPeriod")


# --- Helpers ---


def _safe_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str | None) -> int | float | None:
    """Parse the leading number of a string ("4.2 ng/mL" -> 4.2), else None."""
    if not isinstance(text, str):
        return None
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    number = float(match.group(0))
    return int(number) if number.is_integer() and "." not in match.group(0) else number


def format_number(value: int | float) -> str:
    """Render a number without a trailing ".0" (4.0 -> "4", 4.2 -> "4.2")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_codings(codeable_concept: Any) -> list[Coding]:
    """Extract all codings from a CodeableConcept, falling back to its text."""
    if not isinstance(codeable_concept, dict):
        return []

    codings = []
    raw_codings = codeable_concept.get("coding")
    if isinstance(raw_codings, list):
        for c in raw_codings:
            if isinstance(c, dict):
                codings.append(Coding(
                    system=_safe_str(c.get("system")),
                    code=_safe_str(c.get("code")),
                    display=_safe_str(c.get("display")),
                ))

    text = _safe_str(codeable_concept.get("text"))
    if not codings and text is not None:
        codings.append(Coding(display=text))
    return codings


def primary_coding(codeable_concept: Any) -> Coding | None:
    codings = extract_codings(codeable_concept)
    return codings[0] if codings else None


def get_display_name(codeable_concept: Any) -> str:
    """Human-readable name of a CodeableConcept: text first, then first coding display."""
    if not isinstance(codeable_concept, dict):
        return ""
    text = _safe_str(codeable_concept.get("text"))
    if text is not None:
        return text
    coding = primary_coding(codeable_concept)
    return (coding.display if coding else None) or ""


def extract_date(resource: dict, *fields: str) -> str | None:
    """Return the first date found in ``fields``, taking ``start`` of Period objects."""
    for field in fields:
        value = resource.get(field)
        if isinstance(value, str):
            return value
        if isinstance(value, dict) and isinstance(value.get("start"), str):
            return value["start"]
    return None


def extract_quantity(resource: dict) -> tuple[int | float | None, str | None]:
    """Numeric value and unit from valueQuantity, or a parseable valueString."""
    quantity = resource.get("valueQuantity")
    if isinstance(quantity, dict) and _is_number(quantity.get("value")):
        return quantity["value"], _safe_str(quantity.get("unit"))

    parsed = parse_number(resource.get("valueString"))
    if parsed is not None:
        return parsed, None

    return None, None


def extract_reference_range(resource: dict) -> str | None:
    """Render the first referenceRange as its text or "low-high unit"."""
    ranges = resource.get("referenceRange")
    if not isinstance(ranges, list) or not ranges or not isinstance(ranges[0], dict):
        return None

    ref = ranges[0]
    text = _safe_str(ref.get("text"))
    if text is not None:
        return text

    low = ref.get("low") if isinstance(ref.get("low"), dict) else {}
    high = ref.get("high") if isinstance(ref.get("high"), dict) else {}
    if "value" not in low and "value" not in high:
        return None

    low_val = format_number(low["value"]) if _is_number(low.get("value")) else "?"
    high_val = format_number(high["value"]) if _is_number(high.get("value")) else "?"
    unit = _safe_str(low.get("unit")) or _safe_str(high.get("unit")) or ""
    return f"{low_val}-{high_val} {unit}".strip()


# --- Resource parsers ---


def _parse_medication(resource: dict) -> NormalizedMedication:
    # R4 MedicationRequest / DSTU2 MedicationOrder: medicationCodeableConcept or a reference
    concept = resource.get("medicationCodeableConcept")
    name = ""
    if concept:
        name = get_display_name(concept)
    elif isinstance(resource.get("medicationReference"), dict):
        name = _safe_str(resource["medicationReference"].get("display")) or ""

    # DSTU2 MedicationStatement: medication
    if not name and resource.get("medication"):
        name = get_display_name(resource["medication"])

    return NormalizedMedication(
        resource_type=resource["resourceType"],
        name=name,
        code=primary_coding(concept if concept is not None else resource.get("medication")),
        status=_safe_str(resource.get("status")),
        date_written=extract_date(resource, *MEDICATION_DATE_FIELDS),
    )


def _parse_observation(resource: dict) -> NormalizedObservation:
    value, unit = extract_quantity(resource)
    return NormalizedObservation(
        code=primary_coding(resource.get("code")),
        value=value,
        unit=unit,
        value_string=_safe_str(resource.get("valueString")),
        effective_date=extract_date(resource, *OBSERVATION_DATE_FIELDS),
        status=_safe_str(resource.get("status")),
        reference_range=extract_reference_range(resource),
    )


def _parse_clinical_status(status: Any) -> str | None:
    # DSTU2: plain string, R4: CodeableConcept
    if isinstance(status, str):
        return status
    if isinstance(status, dict):
        display = get_display_name(status)
        if display:
            return display
        coding = primary_coding(status)
        return coding.code if coding else None
    return None


def _parse_condition(resource: dict) -> NormalizedCondition:
    return NormalizedCondition(
        name=get_display_name(resource.get("code")),
        code=primary_coding(resource.get("code")),
        clinical_status=_parse_clinical_status(resource.get("clinicalStatus")),
        onset_date=extract_date(resource, *CONDITION_DATE_FIELDS),
    )


def _parse_procedure(resource: dict) -> NormalizedProcedure:
    return NormalizedProcedure(
        name=get_display_name(resource.get("code")),
        code=primary_coding(resource.get("code")),
        status=_safe_str(resource.get("status")),
        performed_date=extract_date(resource, *PROCEDURE_DATE_FIELDS),
    )


_PARSERS = {
    "MedicationOrder": _parse_medication,
    "MedicationRequest": _parse_medication,
    "MedicationStatement": _parse_medication,
    "Observation": _parse_observation,
    "DiagnosticReport": _parse_observation,
    "Condition": _parse_condition,
    "Procedure": _parse_procedure,
}


def _extract_bundle_resources(bundle: dict) -> list[dict]:
    """Resources of a Bundle that carry a string resourceType."""
    entries = bundle.get("entry")
    if not isinstance(entries, list):
        return []
    resources = []
    for entry in entries:
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if isinstance(resource, dict) and isinstance(resource.get("resourceType"), str):
            resources.append(resource)
    return resources


# --- Public API ---


def parse_resource(payload: Any) -> NormalizedResource | None:
    """Parse a single FHIR resource, or return None if it is not one we handle."""
    if not isinstance(payload, dict):
        return None
    resource_type = payload.get("resourceType")
    if not isinstance(resource_type, str):
        logger.debug("Dropping FHIR payload without a resourceType")
        return None
    parser = _PARSERS.get(resource_type)
    if parser is None:
        logger.debug("Skipping unsupported FHIR resource type %s", resource_type)
        return None
    return parser(payload)


def parse_fhir_payload(payload: Any) -> list[NormalizedResource]:
    """Parse a single resource or every supported resource in a Bundle."""
    if not isinstance(payload, dict):
        return []
    if payload.get("resourceType") == "Bundle":
        parsed = (parse_resource(r) for r in _extract_bundle_resources(payload))
        return [r for r in parsed if r is not None]
    resource = parse_resource(payload)
    return [resource] if resource is not None else []


def _first_of_type(payload: Any, model: type) -> Any:
    for resource in parse_fhir_payload(payload):
        if isinstance(resource, model):
            return resource
    return None


def parse_medication_record(payload: Any, display_name: str) -> NormalizedMedication:
    """Normalized medication for a record, falling back to its display name."""
    med = _first_of_type(payload, NormalizedMedication)
    if med is None:
        return NormalizedMedication(resource_type="MedicationOrder", name=display_name)
    if not med.name and display_name:
        return med.model_copy(update={"name": display_name})
    return med


def parse_observation_record(payload: Any, display_name: str) -> NormalizedObservation:
    obs = _first_of_type(payload, NormalizedObservation)
    if obs is None:
        return NormalizedObservation(code=Coding(display=display_name))
    return obs


def parse_condition_record(payload: Any, display_name: str) -> NormalizedCondition:
    cond = _first_of_type(payload, NormalizedCondition)
    if cond is None:
        return NormalizedCondition(name=display_name)
    if not cond.name and display_name:
        return cond.model_copy(update={"name": display_name})
    return cond


def parse_procedure_record(payload: Any, display_name: str) -> NormalizedProcedure:
    proc = _first_of_type(payload, NormalizedProcedure)
    if proc is None:
        return NormalizedProcedure(name=display_name)
    if not proc.name and display_name:
        return proc.model_copy(update={"name": display_name})
    return proc
