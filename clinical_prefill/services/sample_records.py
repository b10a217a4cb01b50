"""Reference patient profile for demos and tests.

A 68-year-old man with BPH, type 2 diabetes and hypertension, on tamsulosin
and finasteride, with a prior TURP. Records are shaped like the health-records
reader output (camelCase keys, R4 FHIR JSON) so they exercise the same
parsing path as real data.
"""

from clinical_prefill.models.records import ClinicalRecordsInput, Demographics

RXNORM = "http://www.nlm.nih.gov/research/umls/rxnorm"
LOINC = "http://loinc.org"
SNOMED = "http://snomed.info/sct"
CONDITION_CLINICAL = "http://terminology.hl7.org/CodeSystem/condition-clinical"


def _medication(code: str, generic: str, text: str, authored_on: str) -> dict:
    return {
        "displayName": text,
        "fhirResource": {
            "resourceType": "MedicationRequest",
            "status": "active",
            "medicationCodeableConcept": {
                "coding": [{"system": RXNORM, "code": code, "display": generic}],
                "text": text,
            },
            "authoredOn": authored_on,
        },
    }


def _lab(code: str, display: str, value: float, unit: str, date: str, ref: str) -> dict:
    return {
        "displayName": display,
        "fhirResource": {
            "resourceType": "Observation",
            "status": "final",
            "code": {"coding": [{"system": LOINC, "code": code, "display": display}]},
            "valueQuantity": {"value": value, "unit": unit},
            "effectiveDateTime": date,
            "referenceRange": [{"text": ref}],
        },
    }


def _condition(code: str, display: str, text: str, onset: str) -> dict:
    return {
        "displayName": text,
        "fhirResource": {
            "resourceType": "Condition",
            "clinicalStatus": {
                "coding": [{"system": CONDITION_CLINICAL, "code": "active"}],
            },
            "code": {
                "coding": [{"system": SNOMED, "code": code, "display": display}],
                "text": text,
            },
            "onsetDateTime": onset,
        },
    }


def _procedure(code: str, display: str, text: str, performed: str) -> dict:
    return {
        "displayName": text,
        "fhirResource": {
            "resourceType": "Procedure",
            "status": "completed",
            "code": {
                "coding": [{"system": SNOMED, "code": code, "display": display}],
                "text": text,
            },
            "performedDateTime": performed,
        },
    }


def sample_clinical_records_payload() -> dict:
    """Reader-shaped payload for the reference patient (a fresh copy per call)."""
    return {
        "medications": [
            _medication("77492", "tamsulosin", "tamsulosin 0.4 mg oral capsule", "2023-06-15"),
            _medication("25025", "finasteride", "finasteride 5 mg oral tablet", "2022-11-20"),
            _medication("29046", "lisinopril", "lisinopril 10 mg oral tablet", "2020-04-10"),
            _medication("6809", "metformin", "metformin 500 mg oral tablet", "2019-07-22"),
        ],
        "labResults": [
            _lab("2857-1", "PSA [Mass/volume] in Serum or Plasma",
                 4.2, "ng/mL", "2025-01-15", "0.0-4.0 ng/mL"),
            _lab("4548-4", "Hemoglobin A1c/Hemoglobin.total in Blood",
                 6.8, "%", "2024-12-10", "<5.7%"),
        ],
        "conditions": [
            _condition("266569009", "Benign prostatic hyperplasia",
                       "Benign prostatic hyperplasia (BPH)", "2018-05-01"),
            _condition("73211009", "Type 2 diabetes mellitus",
                       "Type 2 diabetes mellitus", "2015-03-15"),
            _condition("38341003", "Essential hypertension",
                       "Essential hypertension", "2016-09-20"),
        ],
        "procedures": [
            _procedure("176103002", "Transurethral resection of prostate",
                       "TURP - Transurethral Resection of Prostate", "2019-03-22"),
            _procedure("80146002", "Appendectomy", "Laparoscopic appendectomy", "2015-08-14"),
        ],
    }


def sample_clinical_records() -> ClinicalRecordsInput:
    return ClinicalRecordsInput.model_validate(sample_clinical_records_payload())


def sample_demographics() -> Demographics:
    return Demographics(age=68, date_of_birth="1957-03-12", biological_sex="male")
