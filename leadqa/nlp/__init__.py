# leadqa/nlp/__init__.py
# =======================
# Language-model extraction of insurance-intake fields and agent feedback.
#
# Public API:
#   extract_lead_fields(transcript, phone_number, identity) → ExtractedFields

from leadqa.nlp.lead_extractor import (  # noqa: F401
    ExtractionError,
    apply_name_safeguard,
    extract_lead_fields,
)

__all__ = ["ExtractionError", "apply_name_safeguard", "extract_lead_fields"]
