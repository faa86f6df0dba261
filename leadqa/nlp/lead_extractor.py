"""
leadqa/nlp/lead_extractor.py
=============================
Extraction Adapter - LeadQA

Responsibility:
    - Send the speaker-tagged transcript, the filename phone number, and
      the identity record (comparison material only) to OpenAI
    - Parse the JSON answer into ExtractedFields
    - Guard against the model copying identity names it never heard

The identity record is shown to the model in a block labelled
"for comparison only"; values are extracted from spoken content alone.

Failures here are fatal for the file: missing API key, API error, or an
answer that is not a JSON object with a valid classification all raise
ExtractionError.

This module does NOT:
    - Merge identity data into the extracted fields
    - Decide the manual-review verdict
    - Retry failed calls
"""

import json
import logging
import os
from dataclasses import replace
from typing import Any

from leadqa import config
from leadqa.identifiers import normalize_text
from leadqa.openai_client import chat_completion
from leadqa.schemas import (
    AgentFeedback,
    AutoInsurance,
    ExtractedFields,
    HealthInsurance,
    HomeInsurance,
    IdentityRecord,
    LeadStatus,
    SuggestedCorrection,
    Vehicle,
)

logger = logging.getLogger("leadqa.nlp.lead_extractor")


class ExtractionError(RuntimeError):
    """Raised when lead fields cannot be extracted from a transcript."""


# Maps the model's agent_feedback keys to AgentFeedback attributes.
_AGENT_FEEDBACK_KEYS: dict[str, str] = {
    "asked_callback_number": "asked_callback_number",
    "asked_full_name": "asked_full_name",
    "asked_vehicle_year_make_model": "asked_vehicle_details",
    "asked_secondary_vehicle": "asked_secondary_vehicle",
    "asked_current_provider": "asked_current_provider",
    "asked_own_or_rent": "asked_own_or_rent",
    "asked_date_of_birth": "asked_dob",
    "asked_address": "asked_address",
}


# ---------------------------------------------------------------------------
# OpenAI prompt - lead extraction
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT: str = (
    "You analyze recorded insurance sales calls to judge lead quality, "
    "extract the caller's intake information, and grade the agent.\n\n"
    "The transcript lines are tagged [Speaker:<id>]. One speaker is the agent, "
    "the other is the caller.\n\n"
    "You may also receive an IDENTITY RECORD from a contact database. It is FOR "
    "COMPARISON ONLY. Never copy a value from it into extracted_data. Every "
    "extracted value must be something actually said in the call; if it was not "
    "said, leave the field empty. Use the record only to list discrepancies "
    "between what was said and what the record holds.\n\n"
    "LEAD APPROVAL REQUIREMENTS:\n"
    "1. The caller explicitly expresses interest in insurance quotes.\n"
    "2. The lead has a name.\n"
    "3. The lead has an address or ZIP code.\n"
    "4. The call contains a vehicle description OR clear confirmation of "
    "current auto insurance.\n"
    'If any requirement is missing, classify as "needs_review" with a '
    "confidence_score below 0.7. Use \"rejected\" only when the caller is "
    "clearly not a lead (wrong number, refuses, not interested).\n\n"
    "EXTRACTION RULES:\n"
    "- Vehicles: only the year, make and model explicitly mentioned. If a make "
    "or model seems wrong (e.g. 'Maza'), keep it as heard and add a "
    "suggested_correction with a reason; never replace the heard value.\n"
    '- current_provider: the provider name, or "Not Insured" if the caller '
    "says they have none.\n"
    "- home_insurance.interested / health_insurance.interested: true, false, "
    "or null when not discussed.\n"
    '- ownership: "Rent", "Own", or "". home_type: Apartment, Condo, '
    "Manufactured, Multi-Family, Single-Family, Townhome, or \"\".\n"
    "- household_size: a number or null.\n\n"
    "AGENT FEEDBACK: for each required question, true if the agent asked it:\n"
    "asked_callback_number, asked_full_name, asked_vehicle_year_make_model, "
    "asked_secondary_vehicle, asked_current_provider, asked_own_or_rent, "
    "asked_date_of_birth, asked_address.\n\n"
    "Return ONLY a JSON object with this structure:\n"
    "{\n"
    '  "classification": "approved|rejected|needs_review",\n'
    '  "confidence_score": 0.0,\n'
    '  "reasons": [],\n'
    '  "extracted_data": {\n'
    '    "first_name": "", "last_name": "", "date_of_birth": "",\n'
    '    "phone_number": "", "address": "", "city": "", "state": "",\n'
    '    "zip_code": "", "email": "",\n'
    '    "auto_insurance": {\n'
    '      "main_vehicle": {"year": "", "make": "", "model": "", "confidence": 0.0,\n'
    '        "suggested_correction": {"year": "", "make": "", "model": "", "reason": ""}},\n'
    '      "secondary_vehicle": null,\n'
    '      "current_provider": ""\n'
    "    },\n"
    '    "home_insurance": {"interested": null, "ownership": "", "home_type": "", '
    '"current_provider": ""},\n'
    '    "health_insurance": {"interested": null, "household_size": null, '
    '"current_provider": ""}\n'
    "  },\n"
    '  "agent_feedback": {"asked_callback_number": false, "asked_full_name": false, '
    '"asked_vehicle_year_make_model": false, "asked_secondary_vehicle": false, '
    '"asked_current_provider": false, "asked_own_or_rent": false, '
    '"asked_date_of_birth": false, "asked_address": false},\n'
    '  "missing_information": [],\n'
    '  "data_discrepancies": []\n'
    "}\n"
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_lead_fields(
    transcript: str,
    phone_number: str,
    identity: IdentityRecord | None = None,
) -> ExtractedFields:
    """
    Extract lead fields from ``transcript`` with one OpenAI call.

    The name safeguard is applied before returning.

    Raises:
        ExtractionError: missing API key, API failure, or unusable answer.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ExtractionError("OPENAI_API_KEY environment variable is not set.")

    from openai import OpenAI

    client = OpenAI(api_key=api_key)
    try:
        response = chat_completion(
            client,
            model=config.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(transcript, phone_number, identity)},
            ],
            temperature=0.0,
            max_tokens=config.OPENAI_MAX_TOKENS,
            response_format={"type": "json_object"},
        )
    except Exception as exc:
        raise ExtractionError(f"OpenAI extraction request failed: {exc}") from exc

    if not getattr(response, "choices", None):
        raise ExtractionError("OpenAI returned no choices.")
    raw_content = response.choices[0].message.content or ""
    logger.debug("OpenAI raw extraction response: %s", raw_content)

    try:
        fields = parse_extraction_response(raw_content)
    except ExtractionError:
        logger.error("Extraction failed: unparseable model answer.")
        raise

    logger.info(
        "Extraction parsed: classification=%s, confidence=%.2f, missing=%d, discrepancies=%d.",
        fields.classification.value,
        fields.confidence_score,
        len(fields.missing_information),
        len(fields.data_discrepancies),
    )
    return apply_name_safeguard(fields, identity, transcript)


def build_user_message(
    transcript: str,
    phone_number: str,
    identity: IdentityRecord | None,
) -> str:
    """Render the user turn: transcript, phone, and the comparison-only identity block."""
    lines = [
        "CALL TRANSCRIPT:",
        transcript,
        "",
        f"Phone number from filename: {phone_number or 'Not available'}",
        "",
    ]
    if identity is None:
        lines.append("IDENTITY RECORD: not available.")
    else:
        lines.extend([
            "IDENTITY RECORD (FOR COMPARISON ONLY - do not use for extraction):",
            f"First Name: {identity.first_name or 'Not found'}",
            f"Last Name: {identity.last_name or 'Not found'}",
            f"Address: {identity.address or 'Not found'}",
            f"City: {identity.city or 'Not found'}",
            f"State: {identity.state or 'Not found'}",
            f"ZIP: {identity.zip or 'Not found'}",
            f"Name Verified: {'Yes' if identity.name_verified else 'No'}",
            f"Address Verified: {'Yes' if identity.address_verified else 'No'}",
        ])
    return "\n".join(lines)


def parse_extraction_response(raw: str) -> ExtractedFields:
    """
    Parse and validate the model's JSON answer.

    Raises:
        ExtractionError: not JSON, not an object, or no valid classification.
    """
    try:
        parsed = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"OpenAI response is not valid JSON: {raw[:200]!r}") from exc

    if not isinstance(parsed, dict):
        raise ExtractionError(f"Expected JSON object, got {type(parsed).__name__}")

    try:
        classification = LeadStatus(str(parsed.get("classification", "")).strip().lower())
    except ValueError as exc:
        raise ExtractionError(
            f"Invalid classification: {parsed.get('classification')!r}"
        ) from exc

    data = _as_dict(parsed.get("extracted_data"))
    auto = _as_dict(data.get("auto_insurance"))
    home = _as_dict(data.get("home_insurance"))
    health = _as_dict(data.get("health_insurance"))
    feedback = _as_dict(parsed.get("agent_feedback"))

    return ExtractedFields(
        first_name=_str(data.get("first_name")),
        last_name=_str(data.get("last_name")),
        dob=_str(data.get("date_of_birth")),
        phone_number=_str(data.get("phone_number")),
        address=_str(data.get("address")),
        city=_str(data.get("city")),
        zip=_str(data.get("zip_code")),
        state=_str(data.get("state")),
        email=_str(data.get("email")),
        auto_insurance=AutoInsurance(
            main_vehicle=_parse_vehicle(auto.get("main_vehicle")),
            secondary_vehicle=_parse_vehicle(auto.get("secondary_vehicle")),
            current_provider=_str(auto.get("current_provider")),
        ),
        home_insurance=HomeInsurance(
            interested=_tri_state(home.get("interested")),
            ownership=_str(home.get("ownership")),
            home_type=_str(home.get("home_type")),
            current_provider=_str(home.get("current_provider")),
        ),
        health_insurance=HealthInsurance(
            interested=_tri_state(health.get("interested")),
            household_size=_int_or_none(health.get("household_size")),
            current_provider=_str(health.get("current_provider")),
        ),
        agent_feedback=AgentFeedback(**{
            attr: feedback.get(key) is True for key, attr in _AGENT_FEEDBACK_KEYS.items()
        }),
        classification=classification,
        confidence_score=_confidence(parsed.get("confidence_score")),
        reasons=_str_tuple(parsed.get("reasons")),
        missing_information=_str_tuple(parsed.get("missing_information")),
        data_discrepancies=_str_tuple(parsed.get("data_discrepancies")),
    )


def apply_name_safeguard(
    fields: ExtractedFields,
    identity: IdentityRecord | None,
    transcript: str,
) -> ExtractedFields:
    """
    Blank extracted names that were copied from the identity record.

    A name is discarded when it equals the identity value and never
    appears (case-insensitive) anywhere in the transcript.
    """
    if identity is None:
        return fields

    spoken = normalize_text(transcript)
    changes: dict[str, str] = {}
    for attr in ("first_name", "last_name"):
        extracted = normalize_text(getattr(fields, attr))
        known = normalize_text(getattr(identity, attr))
        if extracted and extracted == known and extracted not in spoken:
            logger.warning(
                "Name safeguard: discarded extracted %s not heard in the transcript.",
                attr,
            )
            changes[attr] = ""

    return replace(fields, **changes) if changes else fields


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_vehicle(raw: Any) -> Vehicle | None:
    if not isinstance(raw, dict):
        return None
    vehicle = Vehicle(
        year=_str(raw.get("year")),
        make=_str(raw.get("make")),
        model=_str(raw.get("model")),
        confidence=_confidence(raw.get("confidence"), default=None),
        suggested_correction=_parse_correction(raw.get("suggested_correction")),
    )
    if not vehicle.description and vehicle.suggested_correction is None:
        return None
    return vehicle


def _parse_correction(raw: Any) -> SuggestedCorrection | None:
    if not isinstance(raw, dict):
        return None
    correction = SuggestedCorrection(
        year=_str(raw.get("year")),
        make=_str(raw.get("make")),
        model=_str(raw.get("model")),
        reason=_str(raw.get("reason")),
    )
    if not any((correction.year, correction.make, correction.model)):
        return None
    return correction


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(s for s in (_str(v) for v in value) if s)


def _tri_state(value: Any) -> bool | None:
    """True / False / None (not detected); accepts yes/no strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("yes", "true"):
            return True
        if lowered in ("no", "false"):
            return False
    return None


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _confidence(value: Any, default: float | None = 0.0) -> float | None:
    """Coerce to a float clamped into [0, 1]."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(number, 0.0), 1.0)
