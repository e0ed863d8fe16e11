"""Recording session that coordinates capture, recognition and the transcript."""

import time
import logging
import threading
from datetime import datetime
from functools import partial
from typing import Callable, Optional

from ..audio.capture import AudioCaptureDevice
from ..audio.recording_file import RecordingFile
from ..errors import (
    DeviceUnavailable,
    EngineUnavailable,
    InvalidTransition,
    TranscriberError,
    WriteFailure,
)
from ..models.audio import AudioFrame
from ..models.session import SessionSnapshot, SessionState
from ..models.transcription import RecognitionUpdate
from ..transcription.accumulator import TranscriptAccumulator
from ..transcription.base import AbstractRecognitionEngine, RecognitionStream
from .elapsed_timer import ElapsedTimer

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
ErrorCallback = Callable[[TranscriberError], None]


class RecordingSession:
    """State machine for one recording episode.

    ``IDLE -> RECORDING <-> PAUSED -> STOPPED`` and
    ``RECORDING|PAUSED -> DISCARDED``. ``STOPPED`` and ``DISCARDED`` are
    terminal; record again with a new session.

    All state lives behind a single re-entrant lock. The capture thread and
    the recognition worker call back into the session; recognition callbacks
    carry the generation of the stream they belong to so that anything
    delivered by a stream that was already replaced or canceled is ignored.
    Blocking releases (joining the capture thread, canceling a stream) happen
    after the lock is released.
    """

    def __init__(self,
                 device: AudioCaptureDevice,
                 engine: AbstractRecognitionEngine,
                 destination: str,
                 session_id: Optional[str] = None,
                 on_state_change: Optional[StateCallback] = None,
                 on_error: Optional[ErrorCallback] = None,
                 recognition_timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the session.

        Args:
            device: Capture device; the session becomes its frame sink
            engine: Streaming recognition engine
            destination: Path of the recording file
            session_id: Identifier used in logs and saved session info
            on_state_change: Called with (old_state, new_state) on every transition
            on_error: Called with device/engine failures caught by the session
            recognition_timeout: Seconds without any update while recording
                before the engine is treated as unavailable; None disables it
            clock: Monotonic time source
        """
        self.device = device
        self.engine = engine
        self.destination = str(destination)
        self.session_id = session_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.on_state_change = on_state_change
        self.on_error = on_error
        self.recognition_timeout = recognition_timeout
        self.clock = clock

        self.accumulator = TranscriptAccumulator()
        self.timer = ElapsedTimer(clock)
        self.recording: Optional[RecordingFile] = None
        self.started_at: Optional[datetime] = None
        self.dropped_frames = 0

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._error: Optional[TranscriberError] = None
        self._stream: Optional[RecognitionStream] = None
        self._generation = 0
        self._last_update_at = 0.0

        self.device.set_frame_sink(self._route_frame)
        self.device.on_error = self._handle_device_error

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[TranscriberError]:
        return self._error

    @property
    def elapsed_seconds(self) -> int:
        return self.timer.elapsed_seconds()

    def full_text(self) -> str:
        return self.accumulator.full_text()

    def snapshot(self) -> SessionSnapshot:
        """Consistent read-only view of state, elapsed time and transcript."""
        with self._lock:
            recording_path = None
            if self.recording is not None and self._state != SessionState.DISCARDED:
                recording_path = self.recording.path
            return SessionSnapshot(
                state=self._state,
                elapsed_seconds=self.timer.elapsed_seconds(),
                full_text=self.accumulator.full_text(),
                segments=self.accumulator.segments(),
                error=self._error,
                recording_path=recording_path,
            )

    # Commands

    def start(self) -> None:
        """Open the device, begin recognition and start recording.

        Raises:
            InvalidTransition: the session is not idle
            DeviceUnavailable: no microphone or permission denied
            WriteFailure: the recording file cannot be created
            EngineUnavailable: the engine cannot begin a stream
        """
        failure: Optional[TranscriberError] = None
        stream: Optional[RecognitionStream] = None
        with self._lock:
            self._require("start", SessionState.IDLE)
            self._error = None
            try:
                self.recording = self.device.open(self.destination)
            except (DeviceUnavailable, WriteFailure) as e:
                logger.error(f"Session {self.session_id} could not open capture device: {e}")
                self._error = e
                raise

            try:
                self._begin_stream()
                self.device.start()
            except TranscriberError as e:
                logger.error(f"Session {self.session_id} failed to start: {e}")
                failure = e
                self._error = e
                stream = self._detach_stream()
            else:
                self.timer.reset()
                self.timer.start()
                self.accumulator.clear()
                self.accumulator.open_segment()
                self.started_at = datetime.now()
                self._transition(SessionState.RECORDING)

        if failure is not None:
            self._release(stream, delete_recording=True)
            self.recording = None
            raise failure

    def pause(self) -> None:
        """Pause capture, freeze the current segment and cancel the recognition stream.

        If the device cannot pause, the session stops and the error is raised.
        """
        failure: Optional[TranscriberError] = None
        with self._lock:
            self._require("pause", SessionState.RECORDING)
            try:
                self.device.pause()
            except TranscriberError as e:
                logger.error(f"Session {self.session_id} failed to pause: {e}")
                failure = e
                stream = self._finish(SessionState.STOPPED, e)
            else:
                self.timer.freeze()
                self.accumulator.close_segment()
                stream = self._detach_stream()
                self._transition(SessionState.PAUSED)

        if failure is not None:
            self._release(stream)
            self._notify_error(failure)
            raise failure
        if stream is not None:
            stream.cancel()

    def resume(self) -> None:
        """Resume capture into the same file with a new stream and segment.

        If the engine or device cannot resume, the session stops and the
        error is raised.
        """
        failure: Optional[TranscriberError] = None
        stream: Optional[RecognitionStream] = None
        with self._lock:
            self._require("resume", SessionState.PAUSED)
            try:
                self._begin_stream()
                self.device.resume()
            except TranscriberError as e:
                logger.error(f"Session {self.session_id} failed to resume: {e}")
                failure = e
                stream = self._finish(SessionState.STOPPED, e)
            else:
                self.accumulator.open_segment()
                self.timer.start()
                self._transition(SessionState.RECORDING)

        if failure is not None:
            self._release(stream)
            self._notify_error(failure)
            raise failure

    def stop(self) -> SessionSnapshot:
        """Finalize the recording and keep the transcript."""
        with self._lock:
            self._require("stop", SessionState.RECORDING, SessionState.PAUSED)
            stream = self._finish(SessionState.STOPPED)
        self._release(stream)
        return self.snapshot()

    def discard(self) -> None:
        """Drop the recording file and the whole transcript."""
        with self._lock:
            self._require("discard", SessionState.RECORDING, SessionState.PAUSED)
            stream = self._finish(SessionState.DISCARDED)
        self._release(stream, delete_recording=True)

    def check_watchdog(self) -> bool:
        """Stop the session if recognition has been silent for too long.

        Returns:
            True if the watchdog fired
        """
        with self._lock:
            if self.recognition_timeout is None or self._state != SessionState.RECORDING:
                return False
            silent_for = self.clock() - self._last_update_at
            if silent_for < self.recognition_timeout:
                return False
            error = EngineUnavailable(f"No recognition update within {self.recognition_timeout:.0f}s")
            logger.warning(f"Session {self.session_id}: {error}")
            stream = self._finish(SessionState.STOPPED, error)
        self._release(stream)
        self._notify_error(error)
        return True

    # Callbacks from the capture thread and recognition workers

    def _route_frame(self, frame: AudioFrame) -> None:
        stream = self._stream
        if stream is None or not stream.submit(frame):
            self.dropped_frames += 1

    def _handle_update(self, generation: int, update: RecognitionUpdate) -> None:
        with self._lock:
            if generation != self._generation or self._state != SessionState.RECORDING:
                logger.debug(f"Dropping late update from stream generation {generation}")
                return
            self._last_update_at = self.clock()
            self.accumulator.apply_update(update)

    def _handle_engine_error(self, generation: int, error: EngineUnavailable) -> None:
        with self._lock:
            if generation != self._generation or self._state not in (SessionState.RECORDING, SessionState.PAUSED):
                return
            logger.error(f"Session {self.session_id} recognition failed: {error}")
            self._stream = None
            stream = self._finish(SessionState.STOPPED, error)
        self._release(stream)
        self._notify_error(error)

    def _handle_device_error(self, error: TranscriberError) -> None:
        with self._lock:
            if self._state not in (SessionState.RECORDING, SessionState.PAUSED):
                return
            logger.error(f"Session {self.session_id} capture failed: {error}")
            stream = self._finish(SessionState.STOPPED, error)
        self._release(stream)
        self._notify_error(error)

    # Internals

    def _require(self, command: str, *allowed: SessionState) -> None:
        if self._state not in allowed:
            logger.warning(f"Session {self.session_id}: rejected {command} while {self._state.value}")
            raise InvalidTransition(command, self._state)

    def _begin_stream(self) -> None:
        self._generation += 1
        generation = self._generation
        self._stream = self.engine.begin(
            on_update=partial(self._handle_update, generation),
            on_error=partial(self._handle_engine_error, generation),
        )
        self._last_update_at = self.clock()

    def _detach_stream(self) -> Optional[RecognitionStream]:
        stream, self._stream = self._stream, None
        self._generation += 1
        return stream

    def _finish(self, target: SessionState, error: Optional[TranscriberError] = None) -> Optional[RecognitionStream]:
        """Move to a terminal state; returns the stream to cancel outside the lock."""
        self.timer.freeze()
        self.accumulator.close_segment()
        if target == SessionState.DISCARDED:
            self.accumulator.clear()
        if error is not None:
            self._error = error
        stream = self._detach_stream()
        self._transition(target)
        return stream

    def _release(self, stream: Optional[RecognitionStream], delete_recording: bool = False) -> None:
        """Cancel the stream and stop the device; must be called without the lock."""
        if stream is not None:
            stream.cancel()
        try:
            self.device.stop()
        except WriteFailure as e:
            logger.error(f"Session {self.session_id} could not finalize recording: {e}")
            with self._lock:
                if self._state == SessionState.STOPPED:
                    self._error = e
            self._notify_error(e)
        finally:
            if delete_recording and self.recording is not None:
                self.recording.delete()

    def _transition(self, new_state: SessionState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.info(f"Session {self.session_id}: {old_state.value} -> {new_state.value}")
        if self.on_state_change:
            self.on_state_change(old_state, new_state)

    def _notify_error(self, error: TranscriberError) -> None:
        if self.on_error:
            self.on_error(error)
