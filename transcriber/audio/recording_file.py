"""Incremental WAV writer for the session recording."""

import os
import wave
import logging
from pathlib import Path
from typing import Optional

from ..errors import WriteFailure

logger = logging.getLogger(__name__)


class RecordingFile:
    """Handle plus destination path for the persisted audio of one session."""

    def __init__(self, path: str, sample_rate: int = 16000, channels: int = 1, sample_width: int = 2):
        """Create the WAV file at ``path``.

        Args:
            path: Destination of the recording
            sample_rate: Sample rate in Hz
            channels: Number of channels
            sample_width: Bytes per sample (2 for 16-bit PCM)

        Raises:
            WriteFailure: if the file cannot be created
        """
        self.path = str(path)
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.bytes_written = 0
        self._wave: Optional[wave.Wave_write] = None

        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            wf = wave.open(self.path, 'wb')
            wf.setnchannels(channels)
            wf.setsampwidth(sample_width)
            wf.setframerate(sample_rate)
        except OSError as e:
            raise WriteFailure(f"Cannot create recording file {self.path}: {e}") from e
        self._wave = wf
        logger.info(f"Recording file opened: {self.path}")

    @property
    def is_closed(self) -> bool:
        return self._wave is None

    def write(self, data: bytes) -> None:
        """Append PCM data; the WAV header is patched after every write."""
        if self._wave is None:
            raise WriteFailure(f"Recording file already closed: {self.path}")
        try:
            self._wave.writeframes(data)
        except OSError as e:
            raise WriteFailure(f"Error writing recording file {self.path}: {e}") from e
        self.bytes_written += len(data)

    def close(self) -> None:
        """Finalize the WAV header and close the file. Safe to call twice."""
        if self._wave is None:
            return
        wf, self._wave = self._wave, None
        try:
            wf.close()
        except OSError as e:
            raise WriteFailure(f"Error finalizing recording file {self.path}: {e}") from e
        logger.info(f"Recording file closed: {self.path} ({self.bytes_written} bytes of audio)")

    def delete(self) -> bool:
        """Close and remove the file from disk.

        Returns:
            True if a file was removed
        """
        try:
            self.close()
        except WriteFailure as e:
            logger.warning(f"Ignoring finalize error before delete: {e}")
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info(f"Recording file deleted: {self.path}")
            return True
        return False

    def size_bytes(self) -> int:
        try:
            return os.path.getsize(self.path)
        except OSError:
            return 0
