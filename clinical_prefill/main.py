import argparse
import logging

from clinical_prefill.config import configure_logging
from clinical_prefill.services.prefill_builder import (
    build_medical_history_prefill,
    get_missing_fields,
    is_fully_prefilled,
)
from clinical_prefill.services.prompt_modifier import build_modified_system_prompt
from clinical_prefill.services.sample_records import (
    sample_clinical_records,
    sample_demographics,
)

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Build the prefill for the reference patient and print it."""
    parser = argparse.ArgumentParser(
        description="Medical history prefill for the reference patient profile",
    )
    parser.add_argument(
        "--prompt", action="store_true", help="print the chatbot system prompt instead",
    )
    parser.add_argument(
        "--no-records", action="store_true", help="build without clinical records",
    )
    args = parser.parse_args(argv)

    configure_logging()
    records = None if args.no_records else sample_clinical_records()
    prefill = build_medical_history_prefill(records, sample_demographics())
    logger.info(
        "Fully prefilled: %s, missing: %s",
        is_fully_prefilled(prefill),
        ", ".join(get_missing_fields(prefill)),
    )

    if args.prompt:
        print(build_modified_system_prompt(prefill))
    else:
        print(prefill.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
