import logging
import os

from dotenv import load_dotenv

load_dotenv()

# Study metadata used when rendering chatbot guidance
STUDY_NAME = os.getenv("STUDY_NAME", "HomeFlow")
STUDY_INSTITUTION = os.getenv("STUDY_INSTITUTION", "the study site")

# Provenance labels attached to prefill sources
PREFILL_SOURCE_TYPE = os.getenv("PREFILL_SOURCE_TYPE", "clinical_record")
DEMOGRAPHICS_SOURCE_TYPE = os.getenv("DEMOGRAPHICS_SOURCE_TYPE", "healthkit")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging() -> None:
    """Set up root logging for scripts and demos (never called on import)."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
