"""
leadqa/reconcile/engine.py
===========================
Reconciliation Engine - LeadQA

Responsibility:
    - Merge the identity record and the transcript-extracted fields into
      one ValidationResult
    - Compute per-field verification flags
    - Assemble the manual-review verdict

Merge policy (identity source is authoritative for contact data):
    first/last name, address, city, state, zip → identity, else transcript
    phone number                              → filename, else transcript
    email, dob                                → identity, else transcript
    insurance + agent feedback                → transcript only

Manual-review reasons accumulate in a fixed order and are never
overwritten or deduplicated:
    1. identity lookup skipped or failed
    2. invalid ZIP from the identity source
    3. extraction-reported missing information ("Missing: ...")
    4. extraction-reported data discrepancies (verbatim)
    5. name / address / zip mismatches (explicit False only)

``needs_manual_review`` is derived from the reasons, and ``status`` is
always the extraction classification.

This module does NOT:
    - Call any external API
    - Log or store anything beyond the verdict summary
    - Use timestamps or randomness (same inputs → identical result)
"""

import logging

from leadqa.identifiers import clean_zip, is_valid_zip, normalize_text, zip5
from leadqa.reconcile.matching import compare_fields
from leadqa.schemas import (
    ContactData,
    ExtractedFields,
    IdentityLookup,
    IdentityRecord,
    TranscriptValues,
    ValidationResult,
    VerificationStatus,
)

logger = logging.getLogger("leadqa.reconcile.engine")


# ---------------------------------------------------------------------------
# Review reasons
# ---------------------------------------------------------------------------

REASON_LOOKUP_FAILED = "Failed to retrieve identity data"
REASON_INVALID_ZIP = "Invalid ZIP code from identity source"
REASON_NAME_MISMATCH = "Name differs between verified source and transcript"
REASON_ADDRESS_MISMATCH = "Address differs between verified source and transcript"
REASON_ZIP_MISMATCH = "ZIP code differs between verified source and transcript"
MISSING_PREFIX = "Missing: "


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reconcile(
    phone_number: str,
    lookup: IdentityLookup,
    extracted: ExtractedFields,
) -> ValidationResult:
    """
    Merge identity and transcript data into the final ValidationResult.

    Args:
        phone_number: Number derived from the file name ("" if none).
        lookup:       Outcome of the identity lookup stage.
        extracted:    Transcript-derived fields (name safeguard applied).

    Returns:
        The reconciled, immutable ValidationResult.
    """
    identity = lookup.record
    verification = compare_fields(extracted, identity)
    invalid_zip = bool(identity and identity.zip and not is_valid_zip(identity.zip))

    reasons = collect_review_reasons(lookup, extracted, verification, invalid_zip)

    result = ValidationResult(
        status=extracted.classification,
        confidence_score=extracted.confidence_score,
        contact=merge_contact(phone_number, identity, extracted),
        extracted=extracted,
        identity=identity,
        lookup_attempted=lookup.attempted,
        verification=verification,
        needs_manual_review=bool(reasons),
        manual_review_reasons=tuple(reasons),
        invalid_zip=invalid_zip,
        name_from_identity=bool(identity and (identity.first_name or identity.last_name)),
        address_from_identity=bool(identity and identity.address),
        transcript_values=_differing_transcript_values(identity, extracted),
        suggested_zip=_suggest_zip(identity) if invalid_zip else None,
    )

    logger.info(
        "Reconciliation verdict: status=%s, needs_manual_review=%s, reasons=%d.",
        result.status.value, result.needs_manual_review, len(reasons),
    )
    return result


def merge_contact(
    phone_number: str,
    identity: IdentityRecord | None,
    extracted: ExtractedFields,
) -> ContactData:
    """Apply the per-field precedence policy to the contact fields."""

    def prefer(attr: str) -> str:
        identity_value = getattr(identity, attr) if identity else None
        return _non_empty(identity_value) or _non_empty(getattr(extracted, attr)) or ""

    return ContactData(
        first_name=prefer("first_name"),
        last_name=prefer("last_name"),
        phone_number=_non_empty(phone_number) or _non_empty(extracted.phone_number) or "",
        email=prefer("email"),
        dob=prefer("dob"),
        address=prefer("address"),
        city=prefer("city"),
        state=prefer("state"),
        zip=prefer("zip"),
    )


def collect_review_reasons(
    lookup: IdentityLookup,
    extracted: ExtractedFields,
    verification: VerificationStatus,
    invalid_zip: bool,
) -> list[str]:
    """Accumulate manual-review reasons in policy order."""
    reasons: list[str] = []

    if not lookup.attempted:
        reasons.append(lookup.skip_reason or REASON_LOOKUP_FAILED)
    elif lookup.failed:
        reasons.append(REASON_LOOKUP_FAILED)

    if invalid_zip:
        reasons.append(REASON_INVALID_ZIP)

    reasons.extend(f"{MISSING_PREFIX}{item}" for item in extracted.missing_information)
    reasons.extend(extracted.data_discrepancies)

    if verification.name_matches is False:
        reasons.append(REASON_NAME_MISMATCH)
    if verification.address_matches is False:
        reasons.append(REASON_ADDRESS_MISMATCH)
    if verification.zip_matches is False:
        reasons.append(REASON_ZIP_MISMATCH)

    return reasons


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _differing_transcript_values(
    identity: IdentityRecord | None,
    extracted: ExtractedFields,
) -> TranscriptValues:
    """Keep transcript values that differ from a present identity value."""
    if identity is None:
        return TranscriptValues()

    def differing(attr: str, normalize=normalize_text) -> str | None:
        heard = getattr(extracted, attr)
        known = getattr(identity, attr)
        if normalize(heard) and normalize(known) and normalize(heard) != normalize(known):
            return heard
        return None

    return TranscriptValues(
        first_name=differing("first_name"),
        last_name=differing("last_name"),
        address=differing("address"),
        zip=differing("zip", normalize=zip5),
        state=differing("state"),
    )


def _suggest_zip(identity: IdentityRecord | None) -> str | None:
    if identity is None or not identity.zip:
        return None
    cleaned = clean_zip(identity.zip)
    return cleaned if is_valid_zip(cleaned) else None


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None
