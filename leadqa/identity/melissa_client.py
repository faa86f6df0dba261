"""
leadqa/identity/melissa_client.py
==================================
Identity Lookup Adapter - Melissa Personator ContactVerify

Responsibility:
    - Look up a caller by phone number (act=Append)
    - Normalize record[0] of the response into an IdentityRecord
    - Degrade gracefully: a skipped or failed lookup never aborts the pipeline

Policy:
    - A field is "found" only when the service returned a non-empty value.
    - Verification flags come from the service (a returned name/address,
      minus any error result codes); they are never recomputed from the
      transcript here.

This module does NOT:
    - Compare identity data with the transcript (reconciliation does that)
    - Retry failed requests
"""

import logging
import os
import re
from typing import Any

import requests

from leadqa import config
from leadqa.identifiers import is_valid_zip
from leadqa.schemas import IdentityLookup, IdentityRecord

logger = logging.getLogger("leadqa.identity.melissa_client")

REQUESTED_COLUMNS = "NameFull,AddressLine1,City,State,PostalCode,EmailAddress,DateOfBirth"

SKIP_NO_PHONE = "No phone number available"
SKIP_NOT_CONFIGURED = "Identity lookup not configured"


class IdentityLookupError(RuntimeError):
    """Raised when the identity service cannot be reached or answers badly."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def lookup_identity(phone_number: str) -> IdentityLookup:
    """
    Look up ``phone_number`` and return the lookup outcome.

    Never raises for service problems: network errors, non-2xx answers
    and malformed bodies are logged and returned as a failed lookup
    (``attempted=True``, ``error`` set).
    """
    if not phone_number:
        logger.warning("Identity lookup skipped: no phone number available.")
        return IdentityLookup(attempted=False, skip_reason=SKIP_NO_PHONE)

    api_key = os.environ.get("MELISSA_API_KEY")
    if not api_key:
        logger.warning("Identity lookup skipped: MELISSA_API_KEY is not set.")
        return IdentityLookup(attempted=False, skip_reason=SKIP_NOT_CONFIGURED)

    logger.info("Identity lookup attempted for phone ending %s.", phone_number[-4:])
    try:
        body = fetch_contact(phone_number, api_key)
    except IdentityLookupError as exc:
        logger.error("Identity lookup failed: %s", exc)
        return IdentityLookup(attempted=True, error=str(exc))

    record = parse_contact_verify_response(body, phone_number)
    if record is None:
        logger.info("Identity lookup succeeded: no record for this phone number.")
    else:
        logger.info(
            "Identity lookup succeeded: name_found=%s, address_found=%s.",
            record.name_found, record.address_found,
        )
        if record.zip and not is_valid_zip(record.zip):
            logger.warning("Identity source returned an invalid ZIP: %r", record.zip)
    return IdentityLookup(attempted=True, record=record)


def fetch_contact(phone_number: str, api_key: str) -> dict[str, Any]:
    """
    Issue one ContactVerify request and return the decoded JSON body.

    Raises:
        IdentityLookupError: network failure, non-2xx status, non-JSON body,
            or a ``Records`` value that is not a list.
    """
    params = {
        "id": api_key,
        "phone": re.sub(r"\D", "", phone_number),
        "act": "Append",
        "cols": REQUESTED_COLUMNS,
        "format": "JSON",
    }
    try:
        resp = requests.get(
            config.MELISSA_ENDPOINT,
            params=params,
            timeout=config.MELISSA_TIMEOUT_SEC,
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        # Never echo the request URL: it carries the API key.
        status = getattr(getattr(exc, "response", None), "status_code", None)
        raise IdentityLookupError(
            f"Melissa request failed ({type(exc).__name__}, status={status})"
        ) from exc

    try:
        body = resp.json()
    except ValueError as exc:
        raise IdentityLookupError("Melissa response is not valid JSON") from exc

    if not isinstance(body, dict):
        raise IdentityLookupError(
            f"Expected JSON object from Melissa, got {type(body).__name__}"
        )
    if not isinstance(body.get("Records") or [], list):
        raise IdentityLookupError("Melissa Records is not a list")
    return body


def parse_contact_verify_response(
    body: dict[str, Any],
    phone_number: str,
) -> IdentityRecord | None:
    """Normalize record[0] of a ContactVerify response; None when no record."""
    records = body.get("Records") or []
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        return None

    record = records[0]
    nested = record.get("Address") if isinstance(record.get("Address"), dict) else {}
    result_codes = _clean(record.get("Results"))

    first_name, last_name = _parse_name(record)
    address = _clean(record.get("AddressLine1")) or _clean(nested.get("AddressLine1"))
    city = _clean(record.get("City")) or _clean(nested.get("City"))
    state = _clean(record.get("State")) or _clean(nested.get("State"))
    zip_code = _clean(record.get("PostalCode")) or _clean(nested.get("PostalCode"))

    name_found = bool(first_name or last_name)
    address_found = bool(address)

    return IdentityRecord(
        phone_number=phone_number,
        first_name=first_name,
        last_name=last_name,
        address=address,
        city=city,
        state=state,
        zip=zip_code,
        email=_clean(record.get("EmailAddress")),
        dob=format_dob(record),
        name_found=name_found,
        address_found=address_found,
        name_verified=name_found and not _has_code(result_codes, "NE"),
        address_verified=address_found and not _has_code(result_codes, "AE"),
        result_codes=result_codes,
    )


def format_dob(record: dict[str, Any]) -> str | None:
    """
    Normalize whichever date-of-birth fields are present to MM/DD/YYYY.

    ``YYYYMM`` and partial year/month parts default the day to ``01``;
    unrecognised full dates are passed through unchanged.
    """
    raw = (
        _clean(record.get("DateOfBirth"))
        or _clean(record.get("DOB"))
        or _clean(record.get("BirthDate"))
    )
    if raw:
        if re.fullmatch(r"\d{6}", raw):
            return f"{raw[4:6]}/01/{raw[:4]}"
        if re.fullmatch(r"\d{8}", raw):
            return f"{raw[4:6]}/{raw[6:8]}/{raw[:4]}"
        iso = re.fullmatch(r"(\d{4})-(\d{2})-(\d{2})", raw)
        if iso:
            return f"{iso.group(2)}/{iso.group(3)}/{iso.group(1)}"
        return raw

    year = _clean(record.get("BirthYear"))
    if not year:
        return None
    month = (_clean(record.get("BirthMonth")) or "01").zfill(2)
    day = (_clean(record.get("BirthDay")) or "01").zfill(2)
    return f"{month}/{day}/{year}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_name(record: dict[str, Any]) -> tuple[str | None, str | None]:
    name = record.get("Name") if isinstance(record.get("Name"), dict) else {}
    first = _clean(name.get("FirstName"))
    last = _clean(name.get("LastName"))
    if first or last:
        return first, last

    full = _clean(record.get("NameFull"))
    if not full:
        return None, None
    parts = full.split(None, 1)
    return parts[0], (parts[1] if len(parts) > 1 else None)


def _has_code(result_codes: str | None, prefix: str) -> bool:
    if not result_codes:
        return False
    return any(code.strip().startswith(prefix) for code in result_codes.split(","))


def _clean(value: Any) -> str | None:
    """Stringify and strip a value; None and blank values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
