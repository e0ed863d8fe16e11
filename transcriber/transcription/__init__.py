"""Transcription module for Transcriber."""

from .base import AbstractRecognitionEngine, RecognitionStream
from .accumulator import TranscriptAccumulator
from .google_streaming import GoogleStreamingEngine

__all__ = [
    "AbstractRecognitionEngine",
    "RecognitionStream",
    "TranscriptAccumulator",
    "GoogleStreamingEngine",
]
