import os

import pytest

# Fixed study metadata and provenance labels for tests
os.environ["STUDY_NAME"] = "HomeFlow"
os.environ["STUDY_INSTITUTION"] = "the study site"
os.environ["PREFILL_SOURCE_TYPE"] = "clinical_record"
os.environ["DEMOGRAPHICS_SOURCE_TYPE"] = "healthkit"

from clinical_prefill.services.prefill_builder import build_medical_history_prefill
from clinical_prefill.services.sample_records import (
    sample_clinical_records,
    sample_demographics,
)


@pytest.fixture
def clinical_records():
    return sample_clinical_records()


@pytest.fixture
def demographics():
    return sample_demographics()


@pytest.fixture
def prefill(clinical_records, demographics):
    """Prefill for the reference patient profile."""
    return build_medical_history_prefill(clinical_records, demographics)


@pytest.fixture
def empty_prefill():
    """Prefill with no clinical records and no demographics."""
    return build_medical_history_prefill(None, None)
