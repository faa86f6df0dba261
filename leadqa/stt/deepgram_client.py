"""
leadqa/stt/deepgram_client.py
==============================
Transcription Adapter - Deepgram (diarization enabled)

Responsibility:
    - Send the whole call recording to Deepgram in one request
    - Return a single speaker-tagged transcript blob

Transcription is load-bearing: any failure raises TranscriptionError and
aborts the file.  There is no retry.

This module does NOT:
    - Chunk, normalize, or resample audio
    - Interpret speaker roles (agent vs. caller)
    - Extract any lead fields
"""

import logging
import os

from leadqa import config
from leadqa.stt.transcript_formatter import format_transcript

logger = logging.getLogger("leadqa.stt.deepgram_client")

DEFAULT_CONTENT_TYPE = "audio/wav"


class TranscriptionError(RuntimeError):
    """Raised when a call cannot be transcribed."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def transcribe_call(audio_bytes: bytes, content_type: str | None = None) -> str:
    """
    Transcribe a call recording with speaker diarization.

    Args:
        audio_bytes:  Raw audio file bytes, as uploaded.
        content_type: MIME type of the audio (defaults to ``audio/wav``).

    Returns:
        Speaker-tagged transcript text (see transcript_formatter).

    Raises:
        TranscriptionError: missing API key, Deepgram failure, or an
            empty transcript.
    """
    if not audio_bytes:
        raise TranscriptionError("Audio file is empty.")

    api_key = os.environ.get("DEEPGRAM_API_KEY")
    if not api_key:
        raise TranscriptionError("DEEPGRAM_API_KEY environment variable is not set.")

    try:
        from deepgram import DeepgramClient
    except ImportError as exc:
        raise TranscriptionError(
            "Deepgram SDK is required. Install with: pip install deepgram-sdk"
        ) from exc

    client = DeepgramClient(api_key=api_key)
    mime = content_type or DEFAULT_CONTENT_TYPE

    logger.info(
        "Transcription requested: %d bytes (%s), model=%s.",
        len(audio_bytes), mime, config.DEEPGRAM_MODEL,
    )
    try:
        response = client.listen.v1.media.transcribe_file(
            request=audio_bytes,
            model=config.DEEPGRAM_MODEL,
            diarize=True,
            utterances=True,
            punctuate=True,
            smart_format=True,
            detect_language=True,
            request_options={"additional_headers": {"Content-Type": mime}},
        )
    except Exception as exc:
        raise TranscriptionError(f"Deepgram transcription failed: {exc}") from exc

    transcript = format_transcript(response)
    if not transcript.strip():
        raise TranscriptionError("Deepgram returned an empty transcript.")

    logger.info(
        "Transcription complete: %d lines, %d chars.",
        transcript.count("\n") + 1, len(transcript),
    )
    return transcript
