# leadqa/schemas/__init__.py
# ===========================
# Typed records shared by every pipeline stage.

from leadqa.schemas.models import (  # noqa: F401
    AgentFeedback,
    AutoInsurance,
    ContactData,
    ExtractedFields,
    HealthInsurance,
    HomeInsurance,
    IdentityLookup,
    IdentityRecord,
    LeadStatus,
    SuggestedCorrection,
    TranscriptValues,
    ValidationResult,
    VerificationStatus,
    Vehicle,
)

__all__ = [
    "AgentFeedback",
    "AutoInsurance",
    "ContactData",
    "ExtractedFields",
    "HealthInsurance",
    "HomeInsurance",
    "IdentityLookup",
    "IdentityRecord",
    "LeadStatus",
    "SuggestedCorrection",
    "TranscriptValues",
    "ValidationResult",
    "VerificationStatus",
    "Vehicle",
]
