"""
tests/test_reconcile.py
========================
Reconciliation Engine Tests

Test categories:
    1. Merge precedence (identity wins contact fields, filename wins phone)
    2. Verification flags (tri-state: None when not comparable)
    3. Manual-review reasons (accumulation, order, no dedup)
    4. Invalid ZIP handling
    5. Determinism (same inputs → identical output)
    6. JSON rendering

All tests are offline - no API calls.
"""

import json
import os
import sys
import unittest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from leadqa.reconcile.engine import (
    REASON_ADDRESS_MISMATCH,
    REASON_INVALID_ZIP,
    REASON_LOOKUP_FAILED,
    REASON_NAME_MISMATCH,
    REASON_ZIP_MISMATCH,
    reconcile,
)
from leadqa.reconcile.matching import compare_fields, compare_values
from leadqa.schemas import (
    AutoInsurance,
    ExtractedFields,
    IdentityLookup,
    IdentityRecord,
    LeadStatus,
    Vehicle,
)

_PHONE = "5551234567"


def _record(**overrides):
    fields = dict(phone_number=_PHONE)
    fields.update(overrides)
    return IdentityRecord(**fields)


def _found(**overrides):
    return IdentityLookup(attempted=True, record=_record(**overrides))


def _extracted(**overrides):
    fields = dict(classification=LeadStatus.APPROVED, confidence_score=0.9)
    fields.update(overrides)
    return ExtractedFields(**fields)


class TestMergePolicy(unittest.TestCase):

    def test_identity_wins_contact_fields(self):
        result = reconcile(
            _PHONE,
            _found(first_name="Jane", address="1 Oak St", city="Akron", state="OH", zip="44301"),
            _extracted(first_name="Janet", address="1 Oak Street", city="Acron",
                       state="Ohio", zip="44302"),
        )
        contact = result.contact
        self.assertEqual(contact.first_name, "Jane")
        self.assertEqual(contact.address, "1 Oak St")
        self.assertEqual(contact.city, "Akron")
        self.assertEqual(contact.state, "OH")
        self.assertEqual(contact.zip, "44301")
        self.assertTrue(result.name_from_identity)
        self.assertTrue(result.address_from_identity)

    def test_transcript_fills_gaps(self):
        result = reconcile(
            _PHONE,
            _found(first_name="Jane", last_name="  "),
            _extracted(first_name="Janet", last_name="Doe", address="1 Oak St", email="j@x.com"),
        )
        self.assertEqual(result.contact.last_name, "Doe")
        self.assertEqual(result.contact.address, "1 Oak St")
        self.assertEqual(result.contact.email, "j@x.com")
        self.assertFalse(result.address_from_identity)

    def test_empty_when_neither_side(self):
        result = reconcile(_PHONE, _found(), _extracted())
        self.assertEqual(result.contact.city, "")
        self.assertEqual(result.contact.dob, "")

    def test_email_and_dob_prefer_identity(self):
        result = reconcile(
            _PHONE,
            _found(email="id@x.com", dob="01/01/1980"),
            _extracted(email="heard@x.com", dob="02/02/1981"),
        )
        self.assertEqual(result.contact.email, "id@x.com")
        self.assertEqual(result.contact.dob, "01/01/1980")

    def test_filename_phone_wins(self):
        result = reconcile(_PHONE, _found(), _extracted(phone_number="5550000000"))
        self.assertEqual(result.contact.phone_number, _PHONE)

    def test_transcript_phone_fallback(self):
        lookup = IdentityLookup(attempted=False, skip_reason="No phone number available")
        result = reconcile("", lookup, _extracted(phone_number="5550000000"))
        self.assertEqual(result.contact.phone_number, "5550000000")

    def test_insurance_is_transcript_only(self):
        auto = AutoInsurance(main_vehicle=Vehicle(year="2015", make="Honda", model="Civic"))
        result = reconcile(_PHONE, _found(first_name="Jane"), _extracted(auto_insurance=auto))
        self.assertEqual(result.extracted.auto_insurance, auto)


class TestVerificationFlags(unittest.TestCase):

    def test_not_comparable_is_none(self):
        status = compare_fields(_extracted(zip="12345"), _record())
        self.assertIsNone(status.zip_matches)
        self.assertIsNone(status.name_matches)

    def test_zip_missing_on_identity_adds_no_reason(self):
        result = reconcile(_PHONE, _found(), _extracted(zip="12345"))
        self.assertIsNone(result.verification.zip_matches)
        self.assertNotIn(REASON_ZIP_MISMATCH, result.manual_review_reasons)
        self.assertFalse(result.needs_manual_review)

    def test_no_identity_all_none(self):
        status = compare_fields(_extracted(first_name="Jane", zip="12345"), None)
        self.assertEqual(
            (status.name_matches, status.address_matches, status.zip_matches, status.state_matches),
            (None, None, None, None),
        )

    def test_case_and_whitespace_insensitive(self):
        self.assertTrue(compare_values("  123  MAIN st", "123 Main St"))

    def test_zip_plus_four_stripped(self):
        status = compare_fields(_extracted(zip="12345"), _record(zip="12345-6789"))
        self.assertTrue(status.zip_matches)

    def test_name_is_first_plus_last(self):
        status = compare_fields(
            _extracted(first_name="jane", last_name="DOE"),
            _record(first_name="Jane", last_name="Doe"),
        )
        self.assertTrue(status.name_matches)

    def test_state_mismatch_adds_no_reason(self):
        result = reconcile(_PHONE, _found(state="OH"), _extracted(state="PA"))
        self.assertIs(result.verification.state_matches, False)
        self.assertEqual(result.manual_review_reasons, ())


class TestManualReviewReasons(unittest.TestCase):

    def test_name_mismatch_reason(self):
        result = reconcile(_PHONE, _found(first_name="Jane"), _extracted(first_name="Janet"))
        self.assertEqual(result.contact.first_name, "Jane")
        self.assertIs(result.verification.name_matches, False)
        self.assertIn(REASON_NAME_MISMATCH, result.manual_review_reasons)
        self.assertTrue(result.needs_manual_review)
        self.assertEqual(result.transcript_values.first_name, "Janet")

    def test_address_and_zip_mismatch_reasons(self):
        result = reconcile(
            _PHONE,
            _found(address="1 Oak St", zip="44301"),
            _extracted(address="9 Elm Rd", zip="44302"),
        )
        self.assertEqual(
            result.manual_review_reasons,
            (REASON_ADDRESS_MISMATCH, REASON_ZIP_MISMATCH),
        )

    def test_lookup_skipped(self):
        lookup = IdentityLookup(attempted=False, skip_reason="No phone number available")
        result = reconcile("", lookup, _extracted())
        self.assertFalse(result.lookup_attempted)
        self.assertIsNone(result.identity)
        self.assertEqual(result.manual_review_reasons, ("No phone number available",))

    def test_lookup_failed(self):
        lookup = IdentityLookup(attempted=True, error="timeout")
        result = reconcile(_PHONE, lookup, _extracted())
        self.assertTrue(result.lookup_attempted)
        self.assertEqual(result.manual_review_reasons, (REASON_LOOKUP_FAILED,))

    def test_lookup_without_record_is_not_a_failure(self):
        result = reconcile(_PHONE, IdentityLookup(attempted=True), _extracted())
        self.assertFalse(result.needs_manual_review)

    def test_extraction_reports_become_reasons(self):
        result = reconcile(
            _PHONE,
            _found(),
            _extracted(missing_information=("zip code", "vehicle"),
                       data_discrepancies=("Caller gave a different street",)),
        )
        self.assertEqual(
            result.manual_review_reasons,
            ("Missing: zip code", "Missing: vehicle", "Caller gave a different street"),
        )

    def test_reasons_accumulate_in_order_without_dedup(self):
        lookup = IdentityLookup(
            attempted=True, record=_record(zip="1234", address="1 Oak St"),
        )
        result = reconcile(
            _PHONE,
            lookup,
            _extracted(address="9 Elm Rd", missing_information=("address",),
                       data_discrepancies=("Address differs",)),
        )
        self.assertEqual(
            result.manual_review_reasons,
            (REASON_INVALID_ZIP, "Missing: address", "Address differs",
             REASON_ADDRESS_MISMATCH),
        )

    def test_flag_never_set_without_reason(self):
        for lookup, extracted in (
            (_found(), _extracted()),
            (_found(first_name="Jane"), _extracted(first_name="Janet")),
            (IdentityLookup(attempted=True, error="x"), _extracted()),
        ):
            result = reconcile(_PHONE, lookup, extracted)
            self.assertEqual(result.needs_manual_review, bool(result.manual_review_reasons))

    def test_status_is_extraction_classification(self):
        lookup = IdentityLookup(attempted=True, error="network")
        result = reconcile(_PHONE, lookup, _extracted())
        self.assertEqual(result.status, LeadStatus.APPROVED)
        self.assertTrue(result.needs_manual_review)


class TestInvalidZip(unittest.TestCase):

    def test_invalid_identity_zip(self):
        result = reconcile(_PHONE, _found(zip="161680"), _extracted())
        self.assertTrue(result.invalid_zip)
        self.assertIn(REASON_INVALID_ZIP, result.manual_review_reasons)
        self.assertEqual(result.suggested_zip, "16168")
        self.assertEqual(result.contact.zip, "161680")

    def test_valid_identity_zip(self):
        result = reconcile(_PHONE, _found(zip="12345-6789"), _extracted())
        self.assertFalse(result.invalid_zip)
        self.assertIsNone(result.suggested_zip)


class TestDeterminism(unittest.TestCase):

    def test_same_inputs_identical_output(self):
        lookup = _found(first_name="Jane", zip="1234")
        extracted = _extracted(first_name="Janet", missing_information=("dob",))

        first = reconcile(_PHONE, lookup, extracted)
        second = reconcile(_PHONE, lookup, extracted)

        self.assertEqual(first, second)
        self.assertEqual(
            json.dumps(first.to_dict(), sort_keys=True),
            json.dumps(second.to_dict(), sort_keys=True),
        )


class TestToDict(unittest.TestCase):

    def test_rendering(self):
        result = reconcile(_PHONE, _found(first_name="Jane", zip="12345"), _extracted())
        out = result.to_dict()

        self.assertEqual(out["status"], "approved")
        self.assertEqual(out["extractedData"]["firstName"], "Jane")
        self.assertEqual(out["extractedData"]["phoneNumber"], _PHONE)
        self.assertEqual(out["melissaData"]["firstName"], "Jane")
        self.assertTrue(out["lookupAttempted"])
        self.assertIsNone(out["verification"]["zipMatches"])
        self.assertEqual(out["manualReviewReasons"], [])
        self.assertIsNone(out["extractedData"]["homeInsurance"]["interested"])
        self.assertEqual(len(out["agentFeedback"]), 8)
        json.dumps(out)  # must be JSON-serializable

    def test_no_identity_renders_null(self):
        lookup = IdentityLookup(attempted=True, error="down")
        self.assertIsNone(reconcile(_PHONE, lookup, _extracted()).to_dict()["melissaData"])


if __name__ == "__main__":
    unittest.main()
