# leadqa/stt/__init__.py
# =======================
# Speech-to-Text Layer - LeadQA
#
#   1. Send the call to Deepgram with diarization enabled
#   2. Render utterances (or word-level speaker tags) as
#      "[Speaker:<id>] <text>" lines
#
# Public API:
#   transcribe_call(audio_bytes, content_type) → str

from leadqa.stt.deepgram_client import TranscriptionError, transcribe_call  # noqa: F401
from leadqa.stt.transcript_formatter import format_transcript  # noqa: F401

__all__ = [
    "TranscriptionError",
    "format_transcript",
    "transcribe_call",
]
