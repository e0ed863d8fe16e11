"""Transcript accumulator that merges recognition updates into segments.

A segment is bounded by recognition finality and by the session's
pause/resume cycles. Partial updates overwrite the in-progress segment's
text. A final update settles that text into a closed segment and begins a
new empty in-progress segment. Pausing or stopping closes the in-progress
segment whatever its finality. Closed segments are never modified again.
"""

import logging
import threading
from typing import List, Optional, Tuple

from ..models.transcription import RecognitionUpdate, TranscriptSegment

logger = logging.getLogger(__name__)

SEGMENT_DELIMITER = "\n\n"


class TranscriptAccumulator:
    """Ordered closed segments plus at most one in-progress segment."""

    def __init__(self, delimiter: str = SEGMENT_DELIMITER):
        self.delimiter = delimiter
        self.lock = threading.RLock()
        self._closed: List[TranscriptSegment] = []
        self._in_progress = ""
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def in_progress_text(self) -> str:
        """Latest recognized text of the open segment."""
        with self.lock:
            return self._in_progress if self._open else ""

    def open_segment(self) -> None:
        """Begin a new in-progress segment."""
        with self.lock:
            if self._open:
                self.close_segment()
            self._in_progress = ""
            self._open = True
            logger.debug(f"Opened transcript segment {len(self._closed)}")

    def apply_update(self, update: RecognitionUpdate) -> bool:
        """Merge one recognition update into the open segment.

        Returns:
            False if no segment is open and the update was ignored
        """
        with self.lock:
            if not self._open:
                logger.debug(f"Ignoring update with no open segment: '{update.text[:50]}'")
                return False
            self._in_progress = update.text
            if update.is_final:
                self.open_segment()
            return True

    def close_segment(self) -> Optional[TranscriptSegment]:
        """Freeze the in-progress text into the closed list, final or not."""
        with self.lock:
            if not self._open:
                return None
            segment = TranscriptSegment(index=len(self._closed), text=self._in_progress)
            self._closed.append(segment)
            self._in_progress = ""
            self._open = False
            logger.debug(f"Closed transcript segment {segment.index}: '{segment.text[:50]}'")
            return segment

    def segments(self) -> Tuple[str, ...]:
        """Texts of all segments, closed ones first, including the open one."""
        with self.lock:
            texts = [segment.text for segment in self._closed]
            if self._open:
                texts.append(self._in_progress)
            return tuple(texts)

    @property
    def closed_segments(self) -> Tuple[TranscriptSegment, ...]:
        with self.lock:
            return tuple(self._closed)

    def full_text(self) -> str:
        """Join all non-empty segment texts with the segment delimiter."""
        return self.delimiter.join(text for text in self.segments() if text)

    def clear(self) -> None:
        """Drop every segment."""
        with self.lock:
            self._closed = []
            self._in_progress = ""
            self._open = False
