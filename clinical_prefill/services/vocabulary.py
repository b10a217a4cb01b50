"""Medical vocabulary tables for classifying clinical records.

LOINC (labs), SNOMED CT and ICD-10 (conditions, procedures) identifiers, the
BPH drug dictionary and free-text keyword tables. Everything here is built once
at import and never mutated.
"""

from types import MappingProxyType
from typing import NamedTuple

from clinical_prefill.models.prefill import ConditionCategory, DrugClass

# --- LOINC codes (lab tests) ---

LOINC_SYSTEM = "LOINC"

LOINC_PSA = "2857-1"
LOINC_HBA1C = "4548-4"
LOINC_URINALYSIS_PANEL = "24356-8"
LOINC_PVR = "9187-6"
LOINC_UROFLOW_QMAX = "80963-5"

# --- SNOMED CT codes (conditions, procedures) ---

SNOMED_SYSTEM = "SNOMED"

SNOMED_CONDITION_CODES = MappingProxyType({
    "73211009": ConditionCategory.DIABETES,
    "38341003": ConditionCategory.HYPERTENSION,
    "266569009": ConditionCategory.BPH,
    "16940007": ConditionCategory.BPH,
})

SNOMED_BPH_PROCEDURE_CODES = frozenset({
    "176103002",  # Transurethral resection of prostate
    "90470006",   # Prostatectomy
})

# --- ICD-10 code prefixes (conditions) ---

ICD10_SYSTEM = "ICD-10"

ICD10_CONDITION_PREFIXES = MappingProxyType({
    ConditionCategory.DIABETES: ("E10", "E11", "E13"),
    ConditionCategory.HYPERTENSION: ("I10", "I11", "I12", "I13", "I14", "I15"),
    ConditionCategory.BPH: ("N40",),
})

# --- BPH drug dictionary ---


class DrugEntry(NamedTuple):
    generic: str
    brands: tuple[str, ...]
    drug_class: DrugClass


BPH_DRUGS: tuple[DrugEntry, ...] = (
    # Alpha blockers
    DrugEntry("tamsulosin", ("flomax",), DrugClass.ALPHA_BLOCKER),
    DrugEntry("alfuzosin", ("uroxatral",), DrugClass.ALPHA_BLOCKER),
    DrugEntry("silodosin", ("rapaflo",), DrugClass.ALPHA_BLOCKER),
    DrugEntry("doxazosin", ("cardura",), DrugClass.ALPHA_BLOCKER),
    DrugEntry("terazosin", ("hytrin",), DrugClass.ALPHA_BLOCKER),
    # 5-alpha reductase inhibitors
    DrugEntry("finasteride", ("proscar", "propecia"), DrugClass.FIVE_ARI),
    DrugEntry("dutasteride", ("avodart",), DrugClass.FIVE_ARI),
    # Anticholinergics
    DrugEntry("oxybutynin", ("ditropan",), DrugClass.ANTICHOLINERGIC),
    DrugEntry("tolterodine", ("detrol",), DrugClass.ANTICHOLINERGIC),
    DrugEntry("solifenacin", ("vesicare",), DrugClass.ANTICHOLINERGIC),
    DrugEntry("darifenacin", ("enablex",), DrugClass.ANTICHOLINERGIC),
    DrugEntry("trospium", ("sanctura",), DrugClass.ANTICHOLINERGIC),
    DrugEntry("fesoterodine", ("toviaz",), DrugClass.ANTICHOLINERGIC),
    # Beta-3 agonists
    DrugEntry("mirabegron", ("myrbetriq",), DrugClass.BETA3_AGONIST),
    DrugEntry("vibegron", ("gemtesa",), DrugClass.BETA3_AGONIST),
)


def _build_drug_name_map(drugs: tuple[DrugEntry, ...]) -> MappingProxyType:
    names: dict[str, DrugEntry] = {}
    for drug in drugs:
        names[drug.generic.lower()] = drug
        for brand in drug.brands:
            names[brand.lower()] = drug
    return MappingProxyType(names)


# Lower-cased generic and brand name -> DrugEntry
DRUG_NAME_MAP = _build_drug_name_map(BPH_DRUGS)


def lookup_drug(name: str | None) -> DrugEntry | None:
    """Exact, case-insensitive lookup of a generic or brand name."""
    if not name:
        return None
    return DRUG_NAME_MAP.get(name.strip().lower())


# --- Keyword tables (substring, case-insensitive) ---

BPH_PROCEDURE_KEYWORDS: tuple[str, ...] = (
    "turp",
    "transurethral resection",
    "holep",
    "holmium laser",
    "greenlight",
    "green light",
    "photoselective vaporization",
    "pvp",
    "urolift",
    "prostatic urethral lift",
    "rezum",
    "water vapor",
    "aquablation",
    "simple prostatectomy",
    "prostatectomy",
    "bladder outlet",
)

CONDITION_KEYWORDS = MappingProxyType({
    ConditionCategory.DIABETES: (
        "diabetes",
        "diabetic",
        "dm type",
        "dm2",
        "dm1",
        "type 2 dm",
        "type 1 dm",
        "hyperglycemia",
        "a1c",
    ),
    ConditionCategory.HYPERTENSION: (
        "hypertension",
        "hypertensive",
        "high blood pressure",
        "htn",
        "elevated blood pressure",
    ),
    ConditionCategory.BPH: (
        "benign prostatic hyperplasia",
        "benign prostatic hypertrophy",
        "enlarged prostate",
        "bph",
        "bladder outlet obstruction",
        "lower urinary tract symptoms",
        "luts",
        "prostate enlargement",
    ),
})

LAB_KEYWORDS = MappingProxyType({
    "psa": ("psa", "prostate specific antigen", "prostate-specific antigen"),
    "hba1c": ("hba1c", "hemoglobin a1c", "glycated hemoglobin", "a1c", "glycohemoglobin"),
    "urinalysis": ("urinalysis", "urine analysis", "ua ", "u/a"),
})


def matches_keyword(text: str | None, keywords: tuple[str, ...]) -> bool:
    """True if any keyword occurs in ``text`` (case-insensitive substring)."""
    if not text:
        return False
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)
