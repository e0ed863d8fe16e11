"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ..errors import TranscriberError


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"
    DISCARDED = "discarded"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.STOPPED, SessionState.DISCARDED)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for presentation layers."""
    state: SessionState
    elapsed_seconds: int
    full_text: str
    segments: Tuple[str, ...] = ()
    error: Optional[TranscriberError] = None
    recording_path: Optional[str] = None

    @property
    def elapsed_display(self) -> str:
        """Elapsed time as MM:SS."""
        minutes, seconds = divmod(self.elapsed_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"


@dataclass
class SessionInfo:
    """Information about a finished recording session."""
    session_id: str
    start_time: datetime
    duration_seconds: int
    audio_file: str
    file_size_bytes: int
    sample_rate: int
    total_frames: int
    transcript: str = ""
    segments: list = field(default_factory=list)
    error_code: Optional[str] = None
