"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioStats:
    """Audio capture statistics."""
    is_open: bool
    is_capturing: bool
    sample_rate: int
    chunk_size: int
    total_frames: int
    dropped_frames: int
    bytes_written: int


@dataclass
class AudioFrame:
    """A single buffer of PCM16 samples with the time it was captured."""
    data: bytes
    timestamp: float
    frame_number: int
    sample_rate: int = 16000
    channels: int = 1
