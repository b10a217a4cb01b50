"""Tests for Pydantic models - inputs, prefill entries, aggregate defaults."""

import pytest
from pydantic import ValidationError

from clinical_prefill.models.prefill import (
    Confidence,
    LabEntry,
    LabValue,
    MatchMethod,
    MedicalHistoryPrefill,
    MedicationGroup,
    PrefillEntry,
    PrefillSource,
)
from clinical_prefill.models.records import (
    ClinicalRecord,
    ClinicalRecordsInput,
    Demographics,
)


def _source(method=MatchMethod.CODE):
    return PrefillSource(
        type="clinical_record",
        display_name="PSA",
        match_method=method,
        matched_code="LOINC|2857-1" if method == MatchMethod.CODE else None,
    )


# --- Input models ---


class TestClinicalRecord:
    def test_camel_case_aliases(self):
        record = ClinicalRecord.model_validate({
            "displayName": "Flomax",
            "fhirResource": {"resourceType": "MedicationRequest"},
        })
        assert record.display_name == "Flomax"
        assert record.raw_resource == {"resourceType": "MedicationRequest"}

    def test_raw_payload_alias(self):
        record = ClinicalRecord.model_validate({
            "displayName": "PSA",
            "rawResourcePayload": {"resourceType": "Observation"},
        })
        assert record.raw_resource["resourceType"] == "Observation"

    def test_snake_case_names(self):
        record = ClinicalRecord(display_name="TURP", raw_resource=None)
        assert record.display_name == "TURP"
        assert record.raw_resource is None

    def test_non_object_payload_dropped(self):
        record = ClinicalRecord.model_validate({
            "displayName": "PSA",
            "fhirResource": "not json",
        })
        assert record.raw_resource is None

    def test_missing_display_name(self):
        record = ClinicalRecord.model_validate({"displayName": None})
        assert record.display_name == ""

    def test_frozen(self):
        record = ClinicalRecord(display_name="PSA")
        with pytest.raises(ValidationError):
            record.display_name = "HbA1c"


class TestClinicalRecordsInput:
    def test_defaults_empty(self):
        records = ClinicalRecordsInput()
        assert records.medications == []
        assert records.lab_results == []
        assert records.conditions == []
        assert records.procedures == []

    def test_lab_results_alias(self):
        records = ClinicalRecordsInput.model_validate({
            "labResults": [{"displayName": "PSA"}],
        })
        assert len(records.lab_results) == 1
        assert records.lab_results[0].display_name == "PSA"

    def test_null_category_coerced(self):
        records = ClinicalRecordsInput.model_validate({"medications": None})
        assert records.medications == []

    def test_non_list_category_coerced(self):
        records = ClinicalRecordsInput.model_validate({"conditions": "BPH"})
        assert records.conditions == []

    def test_non_object_items_skipped(self):
        records = ClinicalRecordsInput.model_validate({
            "procedures": [None, "TURP", {"displayName": "TURP"}],
        })
        assert [r.display_name for r in records.procedures] == ["TURP"]


class TestDemographics:
    def test_camel_case_aliases(self):
        demo = Demographics.model_validate({
            "age": 68,
            "dateOfBirth": "1957-03-12",
            "biologicalSex": "male",
        })
        assert demo.age == 68
        assert demo.date_of_birth == "1957-03-12"
        assert demo.biological_sex == "male"

    def test_defaults_none(self):
        demo = Demographics()
        assert demo.age is None
        assert demo.biological_sex is None

    def test_unusable_age_dropped(self):
        assert Demographics.model_validate({"age": "unknown"}).age is None
        assert Demographics.model_validate({"age": 68.5}).age is None
        assert Demographics.model_validate({"age": True}).age is None
        assert Demographics.model_validate({"age": [68]}).age is None

    def test_integral_age_coerced(self):
        assert Demographics.model_validate({"age": 68.0}).age == 68
        assert Demographics.model_validate({"age": "68"}).age == 68

    def test_non_string_sex_dropped(self):
        demo = Demographics.model_validate({"biologicalSex": 2, "dateOfBirth": 19570312})
        assert demo.biological_sex is None
        assert demo.date_of_birth is None


# --- Prefill entries ---


class TestPrefillEntry:
    def test_empty_entry(self):
        entry = LabEntry()
        assert entry.value is None
        assert entry.confidence == Confidence.NONE
        assert entry.sources == []
        assert not entry.is_known

    def test_high_with_code_source(self):
        entry = LabEntry(
            value=LabValue(value=4.2, unit="ng/mL"),
            confidence=Confidence.HIGH,
            sources=[_source()],
        )
        assert entry.is_known
        assert entry.value.value == 4.2

    def test_high_with_direct_api_source(self):
        entry = PrefillEntry[int](
            value=68,
            confidence=Confidence.HIGH,
            sources=[PrefillSource(
                type="healthkit", display_name="Age: 68", match_method=MatchMethod.DIRECT_API,
            )],
        )
        assert entry.value == 68

    def test_high_with_text_source_rejected(self):
        with pytest.raises(ValidationError):
            LabEntry(
                value=LabValue(value=4.2),
                confidence=Confidence.HIGH,
                sources=[_source(MatchMethod.TEXT)],
            )

    def test_medium_with_text_source(self):
        entry = LabEntry(
            value=LabValue(value=4.2),
            confidence=Confidence.MEDIUM,
            sources=[_source(MatchMethod.TEXT)],
        )
        assert entry.confidence == Confidence.MEDIUM

    def test_value_without_confidence_rejected(self):
        with pytest.raises(ValidationError):
            LabEntry(value=LabValue(value=4.2), sources=[_source()])

    def test_confidence_without_value_rejected(self):
        with pytest.raises(ValidationError):
            LabEntry(confidence=Confidence.MEDIUM, sources=[_source(MatchMethod.TEXT)])

    def test_value_without_sources_rejected(self):
        with pytest.raises(ValidationError):
            LabEntry(value=LabValue(value=4.2), confidence=Confidence.MEDIUM)

    def test_list_valued_group(self):
        assert MedicationGroup().value is None

    def test_confidence_serializes_as_string(self):
        data = LabEntry().model_dump(mode="json")
        assert data == {"value": None, "confidence": "none", "sources": []}


class TestMedicalHistoryPrefill:
    def test_default_all_empty(self):
        prefill = MedicalHistoryPrefill()
        assert not prefill.demographics.age.is_known
        assert all(not g.is_known for g in prefill.medications.groups())
        assert all(not g.is_known for g in prefill.conditions.groups())
        assert not prefill.labs.psa.is_known
        assert not prefill.clinical_measurements.pvr.is_known
        assert not prefill.upcoming_surgery.date.is_known

    def test_json_roundtrip(self, prefill):
        restored = MedicalHistoryPrefill.model_validate_json(prefill.model_dump_json())
        assert restored == prefill
