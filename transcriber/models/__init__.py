"""Data models for the Transcriber application."""

from .audio import AudioStats, AudioFrame
from .session import SessionState, SessionSnapshot, SessionInfo
from .transcription import RecognitionUpdate, TranscriptSegment

__all__ = [
    "AudioStats",
    "AudioFrame",
    "SessionState",
    "SessionSnapshot",
    "SessionInfo",
    "RecognitionUpdate",
    "TranscriptSegment",
]
