"""Transcription-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RecognitionUpdate:
    """One result from a recognition stream.

    Partial updates (``is_final=False``) carry the full re-transcription of the
    current utterance. A final update settles that utterance.
    """
    text: str
    is_final: bool = False


@dataclass(frozen=True)
class TranscriptSegment:
    """A closed span of transcript text bounded by pause/resume or stop."""
    index: int
    text: str
