"""Transcriber - live microphone recording with streaming transcription."""

__version__ = "0.1.0"
