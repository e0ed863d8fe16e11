"""Audio capture module."""

from .capture import AudioCaptureDevice
from .recording_file import RecordingFile

__all__ = [
    'AudioCaptureDevice',
    'RecordingFile'
]
