"""
leadqa/stt/transcript_formatter.py
===================================
Speaker-Tagged Transcript Formatter - LeadQA

Responsibility:
    - Turn a diarized Deepgram response into one text blob, one
      ``[Speaker:<id>] <text>`` line per speaker turn
    - Prefer utterances; fall back to folding word-level speaker tags;
      fall back again to the plain transcript string

Works with SDK response objects and plain dicts alike.

This module does NOT:
    - Call Deepgram
    - Reorder, merge across turns, or rewrite any text
"""

from typing import Any, Iterable, Iterator

LINE_SEPARATOR = "\n"


def format_transcript(response: Any) -> str:
    """Render a Deepgram response as a speaker-tagged transcript."""
    results = _get_attr(response, "results", None)
    if results is None:
        return ""

    utterances = _get_attr(results, "utterances", None)
    if utterances:
        return LINE_SEPARATOR.join(
            _tag(_get_attr(utt, "speaker", None), _get_attr(utt, "transcript", "") or "")
            for utt in utterances
        )

    alternative = _first_alternative(results)
    if alternative is None:
        return ""

    words = _get_attr(alternative, "words", None) or []
    if words and all(_get_attr(w, "speaker", None) is not None for w in words):
        return LINE_SEPARATOR.join(
            _tag(speaker, text) for speaker, text in iter_speaker_turns(words)
        )

    return (_get_attr(alternative, "transcript", "") or "").strip()


def iter_speaker_turns(words: Iterable[Any]) -> Iterator[tuple[Any, str]]:
    """
    Fold an ordered word sequence into ``(speaker, text)`` turns.

    A new turn starts whenever the speaker id changes.  Words are consumed
    one at a time and emitted in their original order.
    """
    current_speaker: Any = None
    current_words: list[str] = []

    for word in words:
        token = (_get_attr(word, "word", "") or "").strip()
        if not token:
            continue
        speaker = _get_attr(word, "speaker", None)
        if current_words and speaker != current_speaker:
            yield current_speaker, " ".join(current_words)
            current_words = []
        current_speaker = speaker
        current_words.append(token)

    if current_words:
        yield current_speaker, " ".join(current_words)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _tag(speaker: Any, text: str) -> str:
    return f"[Speaker:{speaker}] {text.strip()}"


def _first_alternative(results: Any) -> Any:
    channels = _get_attr(results, "channels", None) or []
    if not channels:
        return None
    alternatives = _get_attr(channels[0], "alternatives", None) or []
    if not alternatives:
        return None
    return alternatives[0]


def _get_attr(obj, name: str, default):
    """Get an attribute from an SDK object or dict key, with a default."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)
