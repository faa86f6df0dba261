"""
leadqa/schemas/models.py
=========================
Typed Records - LeadQA

Responsibility:
    - Define the records exchanged between pipeline stages:
        IdentityRecord / IdentityLookup  (identity lookup adapter)
        ExtractedFields and its parts    (extraction adapter)
        VerificationStatus               (reconciliation comparisons)
        ValidationResult                 (reconciliation output)
    - Render records to the camelCase JSON returned by the API

Presence semantics:
    - Identity fields are ``None`` when the service did not return them.
    - Transcript-derived strings are ``""`` when not heard in the call.
    - ``interested`` flags are tri-state: True / False / None (not detected).
    - Match flags are tri-state: True / False / None (not comparable).

All records are frozen - once built for a file they are never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LeadStatus(str, Enum):
    """Lead classification."""

    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVIEW = "needs_review"


# ---------------------------------------------------------------------------
# Identity lookup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IdentityRecord:
    """Contact data returned by the phone-based identity lookup."""

    phone_number: str
    first_name: str | None = None
    last_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    email: str | None = None
    dob: str | None = None
    name_found: bool = False
    address_found: bool = False
    name_verified: bool = False
    address_verified: bool = False
    result_codes: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phoneNumber": self.phone_number,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "email": self.email,
            "dob": self.dob,
            "nameFound": self.name_found,
            "addressFound": self.address_found,
            "nameVerified": self.name_verified,
            "addressVerified": self.address_verified,
            "isVerified": self.name_verified or self.address_verified,
            "resultCodes": self.result_codes,
        }


@dataclass(frozen=True)
class IdentityLookup:
    """
    Outcome of the identity lookup stage.

    ``attempted`` is True whenever a request was actually issued, whatever
    its outcome.  ``skip_reason`` is set only when no request was issued;
    ``error`` only when the request failed.
    """

    attempted: bool
    record: IdentityRecord | None = None
    error: str | None = None
    skip_reason: str | None = None

    @property
    def failed(self) -> bool:
        return self.attempted and self.error is not None


# ---------------------------------------------------------------------------
# Transcript extraction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SuggestedCorrection:
    year: str = ""
    make: str = ""
    model: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Vehicle:
    """A vehicle exactly as heard in the call; corrections are suggestions only."""

    year: str = ""
    make: str = ""
    model: str = ""
    confidence: float | None = None
    suggested_correction: SuggestedCorrection | None = None

    @property
    def description(self) -> str:
        return " ".join(p for p in (self.year, self.make, self.model) if p)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "confidence": self.confidence,
            "suggestedCorrection": None,
        }
        if self.suggested_correction is not None:
            out["suggestedCorrection"] = self.suggested_correction.to_dict()
        return out


@dataclass(frozen=True)
class AutoInsurance:
    main_vehicle: Vehicle | None = None
    secondary_vehicle: Vehicle | None = None
    current_provider: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "mainVehicle": self.main_vehicle.to_dict() if self.main_vehicle else None,
            "secondaryVehicle": (
                self.secondary_vehicle.to_dict() if self.secondary_vehicle else None
            ),
            "currentProvider": self.current_provider,
        }


@dataclass(frozen=True)
class HomeInsurance:
    interested: bool | None = None
    ownership: str = ""
    home_type: str = ""
    current_provider: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "interested": self.interested,
            "ownership": self.ownership,
            "homeType": self.home_type,
            "currentProvider": self.current_provider,
        }


@dataclass(frozen=True)
class HealthInsurance:
    interested: bool | None = None
    household_size: int | None = None
    current_provider: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "interested": self.interested,
            "householdSize": self.household_size,
            "currentProvider": self.current_provider,
        }


@dataclass(frozen=True)
class AgentFeedback:
    """Whether the agent asked each required intake question."""

    asked_callback_number: bool = False
    asked_full_name: bool = False
    asked_vehicle_details: bool = False
    asked_secondary_vehicle: bool = False
    asked_current_provider: bool = False
    asked_own_or_rent: bool = False
    asked_dob: bool = False
    asked_address: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "askedCallbackNumber": self.asked_callback_number,
            "askedFullName": self.asked_full_name,
            "askedVehicleDetails": self.asked_vehicle_details,
            "askedSecondaryVehicle": self.asked_secondary_vehicle,
            "askedCurrentProvider": self.asked_current_provider,
            "askedOwnOrRent": self.asked_own_or_rent,
            "askedDob": self.asked_dob,
            "askedAddress": self.asked_address,
        }


@dataclass(frozen=True)
class ExtractedFields:
    """
    Fields the language model derived from the transcript alone.

    Identity data is never copied in here; it is only shown to the model
    as comparison material.
    """

    first_name: str = ""
    last_name: str = ""
    dob: str = ""
    phone_number: str = ""
    address: str = ""
    city: str = ""
    zip: str = ""
    state: str = ""
    email: str = ""
    auto_insurance: AutoInsurance = field(default_factory=AutoInsurance)
    home_insurance: HomeInsurance = field(default_factory=HomeInsurance)
    health_insurance: HealthInsurance = field(default_factory=HealthInsurance)
    agent_feedback: AgentFeedback = field(default_factory=AgentFeedback)
    classification: LeadStatus = LeadStatus.NEEDS_REVIEW
    confidence_score: float = 0.0
    reasons: tuple[str, ...] = ()
    missing_information: tuple[str, ...] = ()
    data_discrepancies: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


# ---------------------------------------------------------------------------
# Reconciliation output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationStatus:
    """Per-field comparison; ``None`` means not comparable (a side is empty)."""

    name_matches: bool | None = None
    address_matches: bool | None = None
    zip_matches: bool | None = None
    state_matches: bool | None = None

    def to_dict(self) -> dict[str, bool | None]:
        return {
            "nameMatches": self.name_matches,
            "addressMatches": self.address_matches,
            "zipMatches": self.zip_matches,
            "stateMatches": self.state_matches,
        }


@dataclass(frozen=True)
class ContactData:
    """Merged contact fields (identity source preferred, transcript fallback)."""

    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    email: str = ""
    dob: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


@dataclass(frozen=True)
class TranscriptValues:
    """Transcript values kept for display where they differ from the identity source."""

    first_name: str | None = None
    last_name: str | None = None
    address: str | None = None
    zip: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    status: LeadStatus
    confidence_score: float
    contact: ContactData
    extracted: ExtractedFields
    identity: IdentityRecord | None
    lookup_attempted: bool
    verification: VerificationStatus
    needs_manual_review: bool
    manual_review_reasons: tuple[str, ...] = ()
    invalid_zip: bool = False
    name_from_identity: bool = False
    address_from_identity: bool = False
    transcript_values: TranscriptValues = field(default_factory=TranscriptValues)
    suggested_zip: str | None = None

    @property
    def name_verified(self) -> bool:
        return bool(self.identity and self.identity.name_verified)

    @property
    def address_verified(self) -> bool:
        return bool(self.identity and self.identity.address_verified)

    def to_dict(self) -> dict[str, Any]:
        """Render as the camelCase JSON document returned to callers."""
        contact = self.contact
        extracted = self.extracted
        return {
            "status": self.status.value,
            "confidenceScore": self.confidence_score,
            "reasons": list(extracted.reasons),
            "needsManualReview": self.needs_manual_review,
            "manualReviewReasons": list(self.manual_review_reasons),
            "extractedData": {
                "firstName": contact.first_name,
                "lastName": contact.last_name,
                "phoneNumber": contact.phone_number,
                "email": contact.email,
                "dob": contact.dob,
                "address": contact.address,
                "city": contact.city,
                "state": contact.state,
                "zip": contact.zip,
                "autoInsurance": extracted.auto_insurance.to_dict(),
                "homeInsurance": extracted.home_insurance.to_dict(),
                "healthInsurance": extracted.health_insurance.to_dict(),
            },
            "agentFeedback": extracted.agent_feedback.to_dict(),
            "missingInformation": list(extracted.missing_information),
            "dataDiscrepancies": list(extracted.data_discrepancies),
            "melissaData": self.identity.to_dict() if self.identity else None,
            "lookupAttempted": self.lookup_attempted,
            "nameVerified": self.name_verified,
            "addressVerified": self.address_verified,
            "nameFromIdentity": self.name_from_identity,
            "addressFromIdentity": self.address_from_identity,
            "verification": self.verification.to_dict(),
            "invalidZip": self.invalid_zip,
            "suggestedZip": self.suggested_zip,
            "transcriptFirstName": self.transcript_values.first_name,
            "transcriptLastName": self.transcript_values.last_name,
            "transcriptAddress": self.transcript_values.address,
            "transcriptZip": self.transcript_values.zip,
            "transcriptState": self.transcript_values.state,
        }
