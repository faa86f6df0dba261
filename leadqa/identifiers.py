"""
leadqa/identifiers.py
======================
Identifier Extraction + Field Normalization - LeadQA

Responsibility:
    - Derive the caller phone number from an audio file name
    - Validate and clean US ZIP codes
    - Provide the string normalization used by field comparison

This module does NOT:
    - Call any external API
    - Decide whether a record needs manual review
"""

import re

# A run of exactly 10 digits - not a slice of a longer digit run.
_PHONE_PATTERN = re.compile(r"(?<!\d)\d{10}(?!\d)")

_ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")

_WHITESPACE = re.compile(r"\s+")


def extract_phone_from_filename(filename: str) -> str:
    """
    Return the first maximal run of exactly 10 digits in ``filename``.

    The digits are returned verbatim (no formatting).  An empty string
    means "no phone number available" and is not an error.

    >>> extract_phone_from_filename("lead_5551234567_v2.wav")
    '5551234567'
    """
    if not filename:
        return ""
    match = _PHONE_PATTERN.search(filename)
    return match.group(0) if match else ""


def is_valid_zip(zip_code: str | None) -> bool:
    """True for a 5-digit ZIP or ZIP+4 (``12345`` / ``12345-6789``)."""
    if not zip_code:
        return False
    return bool(_ZIP_PATTERN.match(zip_code))


def clean_zip(zip_code: str) -> str:
    """
    Best-effort repair of a malformed ZIP (e.g. ``"161680"`` → ``"16168"``).

    Returns the input unchanged when it is already valid or when fewer
    than five digits are available.
    """
    if is_valid_zip(zip_code):
        return zip_code
    digits = "".join(ch for ch in zip_code or "" if ch.isdigit())
    if len(digits) >= 5:
        return digits[:5]
    return zip_code


def normalize_text(value: str | None) -> str:
    """Lowercase, collapse internal whitespace, trim."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip().lower()


def zip5(value: str | None) -> str:
    """Strip a ``+4`` suffix, keeping the 5-digit prefix."""
    normalized = normalize_text(value)
    return normalized.split("-", 1)[0].strip()
