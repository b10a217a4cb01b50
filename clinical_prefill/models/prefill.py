"""Pydantic models for the medical history prefill.

Every derived field is a ``PrefillEntry``: a value, a confidence label and the
provenance of that value. The aggregate ``MedicalHistoryPrefill`` mirrors the
seven sections of the onboarding medical history questionnaire.
"""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator

T = TypeVar("T")


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class MatchMethod(str, Enum):
    CODE = "code"
    TEXT = "text"
    DIRECT_API = "direct_api"


AUTHORITATIVE_METHODS = (MatchMethod.CODE, MatchMethod.DIRECT_API)


class PrefillSource(BaseModel):
    """Where a prefilled value came from and how it was matched."""

    model_config = ConfigDict(frozen=True)

    type: str
    display_name: str
    match_method: MatchMethod
    matched_code: str | None = None  # "<system>|<code>"


class PrefillEntry(BaseModel, Generic[T]):
    """A prefilled value with its confidence and provenance.

    An entry is either empty (no value, no sources, confidence ``none``) or
    fully populated. ``high`` confidence needs a coded or direct-API source.
    """

    model_config = ConfigDict(frozen=True)

    value: T | None = None
    confidence: Confidence = Confidence.NONE
    sources: list[PrefillSource] = []

    @model_validator(mode="after")
    def _check_consistency(self):
        empty = self.value is None
        if empty != (self.confidence == Confidence.NONE) or empty != (not self.sources):
            raise ValueError(
                "confidence 'none', an absent value and empty sources must go together"
            )
        if self.confidence == Confidence.HIGH and not any(
            s.match_method in AUTHORITATIVE_METHODS for s in self.sources
        ):
            raise ValueError("high confidence requires a code or direct_api source")
        return self

    @property
    def is_known(self) -> bool:
        return self.confidence != Confidence.NONE


# --- Domain entities ---


class DrugClass(str, Enum):
    ALPHA_BLOCKER = "alpha_blocker"
    FIVE_ARI = "five_ari"
    ANTICHOLINERGIC = "anticholinergic"
    BETA3_AGONIST = "beta3_agonist"
    OTHER_BPH = "other_bph"
    UNRELATED = "unrelated"


class ConditionCategory(str, Enum):
    DIABETES = "diabetes"          # target metabolic condition
    HYPERTENSION = "hypertension"  # target cardiovascular condition
    BPH = "bph"                    # target disease
    OTHER = "other"


class ClassifiedMedication(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    generic_name: str | None = None
    drug_class: DrugClass
    source: PrefillSource


class MappedCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    category: ConditionCategory
    source: PrefillSource


class MappedProcedure(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    date: str | None = None
    is_bph: bool = False
    source: PrefillSource


class LabValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int | float
    unit: str = ""
    date: str = ""
    reference_range: str | None = None


# --- Aggregate ---

MedicationGroup = PrefillEntry[list[ClassifiedMedication]]
ConditionGroup = PrefillEntry[list[MappedCondition]]
ProcedureGroup = PrefillEntry[list[MappedProcedure]]
LabEntry = PrefillEntry[LabValue]


class DemographicsPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: PrefillEntry[int] = PrefillEntry[int]()
    biological_sex: PrefillEntry[str] = PrefillEntry[str]()
    full_name: PrefillEntry[str] = PrefillEntry[str]()
    ethnicity: PrefillEntry[str] = PrefillEntry[str]()
    race: PrefillEntry[str] = PrefillEntry[str]()


class MedicationsPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    alpha_blockers: MedicationGroup = MedicationGroup()
    five_aris: MedicationGroup = MedicationGroup()
    anticholinergics: MedicationGroup = MedicationGroup()
    beta3_agonists: MedicationGroup = MedicationGroup()
    other_bph: MedicationGroup = MedicationGroup()

    def groups(self) -> list[MedicationGroup]:
        return [
            self.alpha_blockers,
            self.five_aris,
            self.anticholinergics,
            self.beta3_agonists,
            self.other_bph,
        ]


class SurgicalHistoryPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    bph_procedures: ProcedureGroup = ProcedureGroup()
    other_procedures: ProcedureGroup = ProcedureGroup()


class LabsPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    psa: LabEntry = LabEntry()
    hba1c: LabEntry = LabEntry()
    urinalysis: LabEntry = LabEntry()


class ConditionsPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    diabetes: ConditionGroup = ConditionGroup()
    hypertension: ConditionGroup = ConditionGroup()
    bph: ConditionGroup = ConditionGroup()
    other: ConditionGroup = ConditionGroup()

    def groups(self) -> list[ConditionGroup]:
        return [self.diabetes, self.hypertension, self.bph, self.other]


class ClinicalMeasurementsPrefill(BaseModel):
    """Collected in conversation, never from records."""

    model_config = ConfigDict(frozen=True)

    pvr: LabEntry = LabEntry()
    uroflow_qmax: LabEntry = LabEntry()
    mobility: PrefillEntry[str] = PrefillEntry[str]()


class UpcomingSurgeryPrefill(BaseModel):
    """Collected in conversation, never from records."""

    model_config = ConfigDict(frozen=True)

    date: PrefillEntry[str] = PrefillEntry[str]()
    type: PrefillEntry[str] = PrefillEntry[str]()


class MedicalHistoryPrefill(BaseModel):
    model_config = ConfigDict(frozen=True)

    demographics: DemographicsPrefill = DemographicsPrefill()
    medications: MedicationsPrefill = MedicationsPrefill()
    surgical_history: SurgicalHistoryPrefill = SurgicalHistoryPrefill()
    labs: LabsPrefill = LabsPrefill()
    conditions: ConditionsPrefill = ConditionsPrefill()
    clinical_measurements: ClinicalMeasurementsPrefill = ClinicalMeasurementsPrefill()
    upcoming_surgery: UpcomingSurgeryPrefill = UpcomingSurgeryPrefill()
