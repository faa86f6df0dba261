"""
leadqa/pipeline.py
===================
Lead Validation Pipeline - LeadQA

Stage order (strictly sequential, one file per call):
    1. Identifier extraction   → phone number from the file name
    2. Identity lookup         → IdentityLookup (never aborts the file)
    3. Transcription           → speaker-tagged transcript (fatal on error)
    4. Field extraction        → ExtractedFields (fatal on error)
    5. Reconciliation          → ValidationResult

Error policy:
    - Identity lookup problems degrade to a manual-review reason.
    - TranscriptionError / ExtractionError propagate to the caller; no
      partial result is produced.
    - Nothing is retried.

Each invocation builds fresh local state; nothing is shared across files.
"""

import logging
from typing import Any

from leadqa.identifiers import extract_phone_from_filename
from leadqa.identity.melissa_client import lookup_identity
from leadqa.nlp.lead_extractor import extract_lead_fields
from leadqa.reconcile.engine import reconcile
from leadqa.schemas import ValidationResult
from leadqa.stt.deepgram_client import transcribe_call

logger = logging.getLogger("leadqa.pipeline")


def validate_lead(
    audio_bytes: bytes,
    filename: str,
    content_type: str | None = None,
) -> tuple[ValidationResult, str]:
    """
    Run all stages for one call recording.

    Returns:
        (validation_result, transcript)

    Raises:
        TranscriptionError: the call could not be transcribed.
        ExtractionError: lead fields could not be extracted.
    """
    logger.info("Processing file: %s (%d bytes).", filename, len(audio_bytes))

    # Stage 1 - phone number from the file name
    phone_number = extract_phone_from_filename(filename)
    if phone_number:
        logger.info("Stage 1 complete: phone number found in file name.")
    else:
        logger.warning("Stage 1 complete: no 10-digit phone number in file name.")

    # Stage 2 - identity lookup (recoverable)
    lookup = lookup_identity(phone_number)
    logger.info(
        "Stage 2 complete: lookup attempted=%s, record=%s.",
        lookup.attempted, lookup.record is not None,
    )

    # Stage 3 - transcription (fatal on failure)
    transcript = transcribe_call(audio_bytes, content_type)
    logger.info("Stage 3 complete: transcript has %d chars.", len(transcript))

    # Stage 4 - extraction (fatal on failure); identity is comparison context only
    extracted = extract_lead_fields(transcript, phone_number, lookup.record)
    logger.info("Stage 4 complete: classification=%s.", extracted.classification.value)

    # Stage 5 - reconciliation
    result = reconcile(phone_number, lookup, extracted)
    logger.info("Pipeline complete for %s.", filename)
    return result, transcript


def run_pipeline(
    audio_bytes: bytes,
    filename: str,
    content_type: str | None = None,
) -> dict[str, Any]:
    """Run the pipeline and return the JSON-ready result with its transcript."""
    result, transcript = validate_lead(audio_bytes, filename, content_type)
    output = result.to_dict()
    output["transcript"] = transcript
    return output
