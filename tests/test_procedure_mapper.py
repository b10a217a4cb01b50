"""Tests for the procedure mapper - BPH vs general surgical history."""

from clinical_prefill.models.prefill import MatchMethod
from clinical_prefill.models.records import ClinicalRecord
from clinical_prefill.models.resources import Coding
from clinical_prefill.services.procedure_mapper import (
    is_bph_procedure_code,
    is_bph_procedure_name,
    map_procedures,
    separate_procedures,
)

SNOMED = "http://snomed.info/sct"
CPT = "http://www.ama-assn.org/go/cpt"


def _procedure(display_name, system=None, code=None, performed=None):
    resource = {"resourceType": "Procedure", "code": {"text": display_name}}
    if code is not None:
        resource["code"]["coding"] = [{"system": system, "code": code}]
    if performed is not None:
        resource["performedDateTime"] = performed
    return ClinicalRecord.model_validate({"displayName": display_name, "fhirResource": resource})


class TestIsBphProcedureCode:
    def test_snomed_turp(self):
        assert is_bph_procedure_code(Coding(system=SNOMED, code="176103002"))

    def test_no_system(self):
        assert is_bph_procedure_code(Coding(code="90470006"))

    def test_other_system_rejected(self):
        assert not is_bph_procedure_code(Coding(system=CPT, code="176103002"))

    def test_unrelated_code(self):
        assert not is_bph_procedure_code(Coding(system=SNOMED, code="80146002"))
        assert not is_bph_procedure_code(None)


class TestIsBphProcedureName:
    def test_keywords(self):
        assert is_bph_procedure_name("HoLEP")
        assert is_bph_procedure_name("UroLift implant")
        assert is_bph_procedure_name("Transurethral resection of prostate")

    def test_unrelated(self):
        assert not is_bph_procedure_name("Knee arthroscopy")
        assert not is_bph_procedure_name(None)


class TestMapProcedures:
    def test_coded_bph_procedure(self):
        mapped = map_procedures([_procedure("TURP", SNOMED, "176103002", "2019-03-22")])
        assert mapped[0].is_bph
        assert mapped[0].date == "2019-03-22"
        assert mapped[0].source.match_method == MatchMethod.CODE
        assert mapped[0].source.matched_code == "SNOMED|176103002"

    def test_keyword_fallback(self):
        mapped = map_procedures([_procedure("Rezum water vapor therapy")])
        assert mapped[0].is_bph
        assert mapped[0].source.match_method == MatchMethod.TEXT

    def test_keyword_match_kept_alongside_coded_match(self):
        mapped = map_procedures([
            _procedure("HoLEP (holmium laser enucleation)"),
            _procedure("TURP", SNOMED, "176103002"),
        ])
        bph, other = separate_procedures(mapped)
        assert [p.name for p in bph] == ["TURP", "HoLEP (holmium laser enucleation)"]
        assert [p.source.match_method for p in bph] == [MatchMethod.CODE, MatchMethod.TEXT]
        assert other == []

    def test_coded_bph_procedure_not_duplicated(self):
        mapped = map_procedures([_procedure("TURP", SNOMED, "176103002")])
        assert len(mapped) == 1
        assert mapped[0].source.match_method == MatchMethod.CODE

    def test_bph_first_then_record_order(self):
        mapped = map_procedures([
            _procedure("Appendectomy"),
            _procedure("Cataract surgery"),
            _procedure("HoLEP"),
        ])
        assert [p.name for p in mapped] == ["HoLEP", "Appendectomy", "Cataract surgery"]

    def test_other_coded_keeps_code(self):
        mapped = map_procedures([_procedure("Laparoscopic appendectomy", SNOMED, "80146002")])
        assert not mapped[0].is_bph
        assert mapped[0].source.match_method == MatchMethod.CODE
        assert mapped[0].source.matched_code == f"{SNOMED}|80146002"

    def test_display_name_fallback(self):
        record = ClinicalRecord.model_validate({"displayName": "Green Light laser", "fhirResource": None})
        mapped = map_procedures([record])
        assert mapped[0].name == "Green Light laser"
        assert mapped[0].is_bph

    def test_empty(self):
        assert map_procedures([]) == []


class TestSeparateProcedures:
    def test_reference_patient(self, clinical_records):
        bph, other = separate_procedures(map_procedures(clinical_records.procedures))
        assert [p.name for p in bph] == ["TURP - Transurethral Resection of Prostate"]
        assert [p.name for p in other] == ["Laparoscopic appendectomy"]
