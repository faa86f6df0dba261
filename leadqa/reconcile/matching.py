"""
leadqa/reconcile/matching.py
=============================
Field Comparison - LeadQA

Compares transcript-extracted contact fields with the identity record.
A match flag is computed only when BOTH sides are non-empty; otherwise it
stays ``None`` ("not comparable" is distinct from "mismatched").

Comparison is case-insensitive and whitespace-normalized; ZIP codes are
compared on their 5-digit prefix.
"""

from typing import Callable

from leadqa.identifiers import normalize_text, zip5
from leadqa.schemas import ExtractedFields, IdentityRecord, VerificationStatus


def compare_fields(
    extracted: ExtractedFields,
    identity: IdentityRecord | None,
) -> VerificationStatus:
    """Compute name / address / zip / state match flags."""
    if identity is None:
        return VerificationStatus()

    return VerificationStatus(
        name_matches=compare_values(extracted.full_name, identity.full_name),
        address_matches=compare_values(extracted.address, identity.address),
        zip_matches=compare_values(extracted.zip, identity.zip, normalize=zip5),
        state_matches=compare_values(extracted.state, identity.state),
    )


def compare_values(
    transcript_value: str | None,
    identity_value: str | None,
    normalize: Callable[[str | None], str] = normalize_text,
) -> bool | None:
    """Tri-state comparison: None when either side is empty."""
    left = normalize(transcript_value)
    right = normalize(identity_value)
    if not left or not right:
        return None
    return left == right
