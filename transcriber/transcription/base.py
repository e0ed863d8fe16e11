"""Abstract base classes for streaming recognition engines."""

import queue
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional

from ..errors import EngineUnavailable
from ..models.audio import AudioFrame
from ..models.transcription import RecognitionUpdate

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[RecognitionUpdate], None]
ErrorCallback = Callable[[EngineUnavailable], None]


class RecognitionStream:
    """Handle for one recognition stream.

    Frames are queued without blocking and consumed by the engine's worker
    through ``frames()``. Updates and errors are delivered under the stream
    lock, so once ``cancel()`` returns no callback can fire anymore.
    """

    def __init__(self, stream_id: int, on_update: UpdateCallback, on_error: ErrorCallback,
                 max_queued_frames: int = 200):
        self.stream_id = stream_id
        self.on_update = on_update
        self.on_error = on_error
        self.frame_queue: "queue.Queue[Optional[AudioFrame]]" = queue.Queue(maxsize=max_queued_frames)
        self.lock = threading.RLock()
        self.closed_event = threading.Event()
        self.submitted_frames = 0
        self.dropped_frames = 0
        self.worker: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return not self.closed_event.is_set()

    def submit(self, frame: AudioFrame) -> bool:
        """Queue a frame for recognition without blocking.

        Returns:
            False if the frame was dropped (stream closed or queue full)
        """
        if self.closed_event.is_set():
            self.dropped_frames += 1
            return False
        try:
            self.frame_queue.put_nowait(frame)
        except queue.Full:
            self.dropped_frames += 1
            return False
        self.submitted_frames += 1
        return True

    def frames(self, poll_interval: float = 0.1) -> Iterator[AudioFrame]:
        """Yield queued frames until the stream is closed."""
        while not self.closed_event.is_set():
            try:
                frame = self.frame_queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            if frame is None:
                return
            yield frame

    def deliver(self, update: RecognitionUpdate) -> bool:
        """Hand an update to the listener unless the stream has been closed."""
        with self.lock:
            if self.closed_event.is_set():
                return False
            self.on_update(update)
            return True

    def fail(self, error: EngineUnavailable) -> None:
        """Close the stream and report the error once."""
        with self.lock:
            if self.closed_event.is_set():
                return
            self._close()
            logger.error(f"Recognition stream {self.stream_id} failed: {error}")
            self.on_error(error)

    def cancel(self) -> None:
        """Terminate the stream; safe to call repeatedly."""
        with self.lock:
            if self.closed_event.is_set():
                return
            self._close()
            logger.debug(f"Recognition stream {self.stream_id} canceled")

    def _close(self) -> None:
        self.closed_event.set()
        try:
            self.frame_queue.put_nowait(None)
        except queue.Full:
            pass


class AbstractRecognitionEngine(ABC):
    """Base class for streaming recognition engines.

    Subclasses implement ``_run_stream`` which consumes ``stream.frames()``
    and calls ``stream.deliver`` for every recognized update. It runs on a
    dedicated worker thread per stream.
    """

    def __init__(self, language: str = "en-US", max_queued_frames: int = 200):
        self.language = language
        self.max_queued_frames = max_queued_frames
        self.current_stream: Optional[RecognitionStream] = None
        self.streams_started = 0
        self.lock = threading.Lock()

    @abstractmethod
    def is_available(self) -> bool:
        """Return whether the backend can currently accept a stream."""
        pass

    @abstractmethod
    def _run_stream(self, stream: RecognitionStream) -> None:
        """Recognize ``stream.frames()`` and deliver updates until closed.

        Raises:
            EngineUnavailable: the backend cannot continue
        """
        pass

    def begin(self, on_update: UpdateCallback, on_error: ErrorCallback) -> RecognitionStream:
        """Establish a fresh recognition stream.

        Raises:
            EngineUnavailable: the engine reports it is unavailable
        """
        if not self.is_available():
            raise EngineUnavailable(f"{self.__class__.__name__} is not available")

        with self.lock:
            self.streams_started += 1
            stream = RecognitionStream(self.streams_started, on_update, on_error, self.max_queued_frames)
            self.current_stream = stream

        stream.worker = threading.Thread(target=self._stream_worker, args=(stream,), daemon=True)
        stream.worker.name = f"RecognitionStream-{stream.stream_id}"
        stream.worker.start()
        logger.info(f"Recognition stream {stream.stream_id} started on {self.__class__.__name__}")
        return stream

    def cancel(self) -> None:
        """Cancel the current stream, if any."""
        stream = self.current_stream
        if stream is not None:
            stream.cancel()

    def _stream_worker(self, stream: RecognitionStream) -> None:
        try:
            self._run_stream(stream)
        except EngineUnavailable as e:
            stream.fail(e)
        except Exception as e:
            logger.error(f"Recognition stream {stream.stream_id} crashed: {e}", exc_info=True)
            stream.fail(EngineUnavailable(f"Recognition stream crashed: {e}"))
        else:
            if stream.is_active:
                stream.fail(EngineUnavailable("Recognition stream ended unexpectedly"))
        finally:
            logger.debug(f"Recognition stream {stream.stream_id} worker exiting")

    def cleanup(self) -> None:
        """Release backend resources."""
        self.cancel()
