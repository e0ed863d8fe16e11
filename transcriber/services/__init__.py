"""Services layer for Transcriber session logic."""

from .elapsed_timer import ElapsedTimer
from .recording_session import RecordingSession
from .session_manager import SessionManager
from .snapshot_publisher import SnapshotPublisher

__all__ = [
    "ElapsedTimer",
    "RecordingSession",
    "SessionManager",
    "SnapshotPublisher"
]
