"""Tests for the lab extractor - PSA, HbA1c and urinalysis."""

from clinical_prefill.models.prefill import Confidence, MatchMethod
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.services.lab_extractor import (
    extract_hba1c,
    extract_psa,
    extract_urinalysis,
)

LOINC = "http://loinc.org"


def _lab(display_name, code=None, value=None, unit=None, date=None, value_string=None):
    resource = {"resourceType": "Observation", "code": {"text": display_name}}
    if code is not None:
        resource["code"]["coding"] = [{"system": LOINC, "code": code}]
    if value is not None:
        resource["valueQuantity"] = {"value": value, "unit": unit}
    if value_string is not None:
        resource["valueString"] = value_string
    if date is not None:
        resource["effectiveDateTime"] = date
    return ClinicalRecord.model_validate({"displayName": display_name, "fhirResource": resource})


class TestExtractPsa:
    def test_loinc_match_is_high(self):
        entry = extract_psa([_lab("PSA", "2857-1", 4.2, "ng/mL", "2025-01-15")])
        assert entry.confidence == Confidence.HIGH
        assert entry.value.value == 4.2
        assert entry.value.unit == "ng/mL"
        assert entry.value.date == "2025-01-15"
        assert entry.sources[0].match_method == MatchMethod.CODE
        assert entry.sources[0].matched_code == "LOINC|2857-1"

    def test_keyword_match_is_medium(self):
        entry = extract_psa([_lab("Prostate Specific Antigen", value=1.3, unit="ng/mL")])
        assert entry.confidence == Confidence.MEDIUM
        assert entry.value.value == 1.3
        assert entry.sources[0].match_method == MatchMethod.TEXT
        assert entry.sources[0].matched_code is None

    def test_code_match_preferred_over_earlier_text_match(self):
        entry = extract_psa([
            _lab("PSA, total", value=9.9, unit="ng/mL"),
            _lab("Serum marker", "2857-1", 4.2, "ng/mL"),
        ])
        assert entry.confidence == Confidence.HIGH
        assert entry.value.value == 4.2

    def test_first_code_match_wins(self):
        entry = extract_psa([
            _lab("PSA", "2857-1", 3.1, "ng/mL", "2025-01-15"),
            _lab("PSA", "2857-1", 2.7, "ng/mL", "2024-01-15"),
        ])
        assert entry.value.value == 3.1

    def test_record_without_value_skipped(self):
        entry = extract_psa([
            _lab("PSA", "2857-1"),
            _lab("PSA", "2857-1", 4.2, "ng/mL"),
        ])
        assert entry.value.value == 4.2

    def test_coded_record_without_value_falls_back_to_text(self):
        entry = extract_psa([
            _lab("PSA pending", "2857-1"),
            _lab("PSA (outside lab)", value_string="2.0"),
        ])
        assert entry.confidence == Confidence.MEDIUM
        assert entry.value.value == 2.0

    def test_no_match(self):
        entry = extract_psa([_lab("Creatinine", "2160-0", 1.0, "mg/dL")])
        assert entry.confidence == Confidence.NONE
        assert entry.value is None
        assert entry.sources == []

    def test_empty(self):
        assert not extract_psa([]).is_known


class TestExtractHba1c:
    def test_loinc_match(self):
        entry = extract_hba1c([_lab("Hemoglobin A1c", "4548-4", 6.8, "%")])
        assert entry.confidence == Confidence.HIGH
        assert entry.value.unit == "%"

    def test_keyword_match(self):
        entry = extract_hba1c([_lab("HbA1c", value_string="7.1")])
        assert entry.confidence == Confidence.MEDIUM
        assert entry.value.value == 7.1
        assert entry.value.unit == ""


class TestExtractUrinalysis:
    def test_panel_code(self):
        entry = extract_urinalysis([_lab("Urinalysis panel", "24356-8", 1.015, "")])
        assert entry.confidence == Confidence.HIGH

    def test_non_numeric_result_not_extracted(self):
        entry = extract_urinalysis([_lab("Urinalysis", value_string="Negative")])
        assert not entry.is_known


class TestReferencePatientLabs:
    def test_psa_and_hba1c(self, clinical_records):
        psa = extract_psa(clinical_records.lab_results)
        hba1c = extract_hba1c(clinical_records.lab_results)
        assert psa.value.value == 4.2
        assert psa.value.reference_range == "0.0-4.0 ng/mL"
        assert hba1c.value.value == 6.8
        assert hba1c.value.date == "2024-12-10"

    def test_no_urinalysis(self, clinical_records):
        assert not extract_urinalysis(clinical_records.lab_results).is_known
