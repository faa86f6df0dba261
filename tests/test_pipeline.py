"""
tests/test_pipeline.py
=======================
Pipeline Orchestrator Tests

Tests verify:
    1. Stage order and arguments (all adapters mocked)
    2. Lookup failure degrades to manual review, pipeline continues
    3. Transcription / extraction failures are fatal (no partial result)
    4. Name safeguard runs before merging (end-to-end through the adapter)

All tests are OFFLINE - no Deepgram, Melissa, or OpenAI calls.
"""

import os
import sys
import unittest
from unittest.mock import MagicMock, call, patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from leadqa.nlp.lead_extractor import ExtractionError, apply_name_safeguard
from leadqa.pipeline import run_pipeline, validate_lead
from leadqa.schemas import ExtractedFields, IdentityLookup, IdentityRecord, LeadStatus
from leadqa.stt.deepgram_client import TranscriptionError

_FILENAME = "lead_5551234567_v2.wav"
_PHONE = "5551234567"
_TRANSCRIPT = "[Speaker:0] Who am I speaking with?\n[Speaker:1] This is Jane."


def _approved(**overrides):
    fields = dict(classification=LeadStatus.APPROVED, confidence_score=0.9)
    fields.update(overrides)
    return ExtractedFields(**fields)


class TestPipelineStages(unittest.TestCase):

    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_stages_called_in_order(self, mock_lookup, mock_transcribe, mock_extract):
        record = IdentityRecord(phone_number=_PHONE, first_name="Jane", name_found=True)
        mock_lookup.return_value = IdentityLookup(attempted=True, record=record)
        mock_transcribe.return_value = _TRANSCRIPT
        mock_extract.return_value = _approved(first_name="Jane")

        manager = MagicMock()
        manager.attach_mock(mock_lookup, "lookup")
        manager.attach_mock(mock_transcribe, "transcribe")
        manager.attach_mock(mock_extract, "extract")

        result, transcript = validate_lead(b"audio", _FILENAME, "audio/wav")

        self.assertEqual(
            manager.mock_calls,
            [
                call.lookup(_PHONE),
                call.transcribe(b"audio", "audio/wav"),
                call.extract(_TRANSCRIPT, _PHONE, record),
            ],
        )
        self.assertEqual(transcript, _TRANSCRIPT)
        self.assertEqual(result.status, LeadStatus.APPROVED)
        self.assertFalse(result.needs_manual_review)

    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_run_pipeline_returns_json_with_transcript(
        self, mock_lookup, mock_transcribe, mock_extract,
    ):
        mock_lookup.return_value = IdentityLookup(attempted=True)
        mock_transcribe.return_value = _TRANSCRIPT
        mock_extract.return_value = _approved()

        output = run_pipeline(b"audio", _FILENAME)

        self.assertEqual(output["transcript"], _TRANSCRIPT)
        self.assertEqual(output["status"], "approved")
        self.assertEqual(output["extractedData"]["phoneNumber"], _PHONE)

    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_no_phone_in_filename(self, mock_lookup, mock_transcribe, mock_extract):
        mock_lookup.return_value = IdentityLookup(
            attempted=False, skip_reason="No phone number available",
        )
        mock_transcribe.return_value = _TRANSCRIPT
        mock_extract.return_value = _approved()

        result, _ = validate_lead(b"audio", "recording.wav")

        mock_lookup.assert_called_once_with("")
        self.assertTrue(result.needs_manual_review)
        self.assertEqual(result.manual_review_reasons, ("No phone number available",))


class TestFailureHandling(unittest.TestCase):

    @patch.dict(os.environ, {"MELISSA_API_KEY": "mel-test"})
    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.identity.melissa_client.requests.get")
    def test_lookup_network_error_forces_review(self, mock_get, mock_transcribe, mock_extract):
        import requests

        mock_get.side_effect = requests.ConnectionError("unreachable")
        mock_transcribe.return_value = _TRANSCRIPT
        mock_extract.return_value = _approved()

        result, _ = validate_lead(b"audio", _FILENAME)

        self.assertEqual(result.status, LeadStatus.APPROVED)
        self.assertTrue(result.needs_manual_review)
        self.assertTrue(result.lookup_attempted)
        self.assertIn("Failed to retrieve identity data", result.manual_review_reasons)
        mock_transcribe.assert_called_once()
        mock_extract.assert_called_once_with(_TRANSCRIPT, _PHONE, None)

    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_transcription_failure_is_fatal(self, mock_lookup, mock_transcribe, mock_extract):
        mock_lookup.return_value = IdentityLookup(attempted=True)
        mock_transcribe.side_effect = TranscriptionError("Deepgram down")

        with self.assertRaises(TranscriptionError):
            run_pipeline(b"audio", _FILENAME)
        mock_extract.assert_not_called()

    @patch("leadqa.pipeline.reconcile")
    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_extraction_failure_is_fatal(
        self, mock_lookup, mock_transcribe, mock_extract, mock_reconcile,
    ):
        mock_lookup.return_value = IdentityLookup(attempted=True)
        mock_transcribe.return_value = _TRANSCRIPT
        mock_extract.side_effect = ExtractionError("bad JSON")

        with self.assertRaises(ExtractionError):
            run_pipeline(b"audio", _FILENAME)
        mock_reconcile.assert_not_called()


class TestNameSafeguardEndToEnd(unittest.TestCase):

    @patch("leadqa.pipeline.extract_lead_fields")
    @patch("leadqa.pipeline.transcribe_call")
    @patch("leadqa.pipeline.lookup_identity")
    def test_parroted_identity_name_dropped_before_merge(
        self, mock_lookup, mock_transcribe, mock_extract,
    ):
        record = IdentityRecord(phone_number=_PHONE, first_name="Robert", name_found=True)
        transcript = "[Speaker:1] Yeah I want a quote for my truck."
        mock_lookup.return_value = IdentityLookup(attempted=True, record=record)
        mock_transcribe.return_value = transcript
        mock_extract.side_effect = lambda text, phone, identity: apply_name_safeguard(
            _approved(first_name="Robert"), identity, text,
        )

        result, _ = validate_lead(b"audio", _FILENAME)

        self.assertEqual(result.extracted.first_name, "")
        self.assertIsNone(result.verification.name_matches)
        self.assertEqual(result.contact.first_name, "Robert")  # identity still wins the merge
        self.assertFalse(result.needs_manual_review)


if __name__ == "__main__":
    unittest.main()
