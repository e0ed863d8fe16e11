"""File management for session recordings and their metadata."""

import json
import logging
from pathlib import Path
from datetime import datetime
from dataclasses import asdict

from ..models.session import SessionInfo


logger = logging.getLogger(__name__)


class FileManager:
    """Lays out recordings and session metadata under a data directory."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.recordings_dir = self.data_dir / "recordings"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.recordings_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_id(self) -> str:
        """Session ID from the current time, e.g. 2024-05-01_10-00-00.

        A numeric suffix is added only when a recording with that ID exists.
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        session_id = timestamp
        counter = 2
        while self.recording_path(session_id).exists():
            session_id = f"{timestamp}_{counter}"
            counter += 1
        return session_id

    def recording_path(self, session_id: str) -> Path:
        """Path of the WAV recording for a session."""
        return self.recordings_dir / f"recording_{session_id}.wav"

    def session_info_path(self, session_id: str) -> Path:
        """Path of the JSON metadata saved beside the recording."""
        return self.recordings_dir / f"recording_{session_id}.json"

    def save_session_info(self, session_info: SessionInfo) -> str:
        """Save session information to JSON file.

        Args:
            session_info: Session information to save

        Returns:
            Path to saved session info file
        """
        info_file = self.session_info_path(session_info.session_id)

        info_dict = asdict(session_info)
        info_dict['start_time'] = session_info.start_time.isoformat()

        with open(info_file, 'w', encoding='utf-8') as f:
            json.dump(info_dict, f, indent=2, ensure_ascii=False)

        logger.info(f"Session info saved: {info_file}")
        return str(info_file)
