"""Microphone capture device that streams frames to a sink and persists them to disk."""

import pyaudio
import time
import logging
import threading
from threading import Thread, Event
from typing import Optional, Callable

from ..errors import DeviceUnavailable, TranscriberError, WriteFailure
from ..models.audio import AudioFrame, AudioStats
from .recording_file import RecordingFile


logger = logging.getLogger(__name__)

FrameSink = Callable[[AudioFrame], None]
ErrorCallback = Callable[[TranscriberError], None]


class AudioCaptureDevice:
    """Owns the microphone input stream and the recording file of one session.

    Frames are read on a dedicated capture thread. Every frame read while
    capturing is written to the recording file and pushed to the registered
    frame sink. Without a sink the frame is dropped.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
        on_error: Optional[ErrorCallback] = None,
    ):
        """Initialize the capture device.

        Args:
            sample_rate: Audio sample rate (16kHz suits speech recognition)
            chunk_size: Samples per frame
            channels: Number of audio channels (1 for mono)
            format: PyAudio sample format (16-bit signed int)
            on_error: Called on the capture thread when capture or writing fails
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.on_error = on_error

        self.frame_sink: Optional[FrameSink] = None

        # Capture thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.active_event = Event()
        self.io_lock = threading.Lock()

        # Statistics tracking
        self.total_frames = 0
        self.dropped_frames = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.recording: Optional[RecordingFile] = None

    @property
    def is_open(self) -> bool:
        return self.recording is not None

    @property
    def is_capturing(self) -> bool:
        return self.active_event.is_set()

    def set_frame_sink(self, sink: Optional[FrameSink]) -> None:
        """Register the single consumer of captured frames."""
        self.frame_sink = sink

    def open(self, destination: str) -> RecordingFile:
        """Allocate the recording file and prepare the input stream.

        Raises:
            DeviceUnavailable: no input device, or the stream cannot be opened
            WriteFailure: the recording file cannot be created
        """
        if self.is_open:
            raise DeviceUnavailable("Capture device is already open")

        pa = pyaudio.PyAudio()
        try:
            pa.get_default_input_device_info()
        except (IOError, OSError) as e:
            pa.terminate()
            raise DeviceUnavailable(f"No audio input device available: {e}") from e

        try:
            stream = pa.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                start=False,
            )
        except (IOError, OSError) as e:
            pa.terminate()
            raise DeviceUnavailable(f"Cannot open audio input stream: {e}") from e

        try:
            recording = RecordingFile(
                destination,
                sample_rate=self.sample_rate,
                channels=self.channels,
                sample_width=pa.get_sample_size(self.format),
            )
        except WriteFailure:
            stream.close()
            pa.terminate()
            raise

        self.pyaudio_instance = pa
        self.stream = stream
        self.recording = recording
        self.stop_event.clear()
        self.active_event.clear()
        self.total_frames = 0
        self.dropped_frames = 0
        logger.info(f"Audio input opened: {self.sample_rate}Hz, {self.chunk_size} samples/frame -> {recording.path}")
        return recording

    def start(self) -> None:
        """Begin producing frames and writing them to the recording file."""
        if not self.is_open:
            raise DeviceUnavailable("Capture device must be opened before start")
        if self.is_capturing:
            logger.debug("Capture already running")
            return

        self._start_stream("start")

        if self.capture_thread is None:
            self.capture_thread = Thread(target=self._capture_loop, daemon=True)
            self.capture_thread.name = "AudioCaptureThread"
            self.capture_thread.start()
        logger.info("Audio capture started")

    def pause(self) -> None:
        """Stop producing and writing frames, keeping the input stream open."""
        if not self.is_capturing:
            return
        with self.io_lock:
            self.active_event.clear()
            try:
                self.stream.stop_stream()
            except (IOError, OSError) as e:
                raise DeviceUnavailable(f"Cannot pause audio input stream: {e}") from e
        logger.info(f"Audio capture paused after {self.total_frames} frames")

    def resume(self) -> None:
        """Restart producing frames; writing continues in the same file."""
        if not self.is_open:
            raise DeviceUnavailable("Capture device is not open")
        if self.is_capturing:
            return
        self._start_stream("resume")
        logger.info("Audio capture resumed")

    def _start_stream(self, action: str) -> None:
        with self.io_lock:
            try:
                self.stream.start_stream()
            except (IOError, OSError) as e:
                raise DeviceUnavailable(f"Cannot {action} audio input stream: {e}") from e
            self.active_event.set()

    def stop(self) -> Optional[RecordingFile]:
        """Finalize the recording file and release the input stream.

        Returns:
            The closed recording file, or None if the device was not open
        """
        if not self.is_open:
            return None

        logger.info("Stopping audio capture")
        self.stop_event.set()
        self.active_event.clear()

        thread = self.capture_thread
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Capture thread did not stop cleanly")
        self.capture_thread = None

        recording = self.recording
        with self.io_lock:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except (IOError, OSError) as e:
                logger.warning(f"Error closing audio stream: {e}")
            finally:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None
                self.stream = None
                self.recording = None
                recording.close()

        logger.info(f"Audio capture stopped. Total frames: {self.total_frames}, dropped: {self.dropped_frames}")
        return recording

    def _capture_loop(self) -> None:
        """Internal method: read frames until stopped, skipping while paused."""
        while not self.stop_event.is_set():
            if not self.active_event.wait(timeout=0.1):
                continue

            error: Optional[TranscriberError] = None
            frame: Optional[AudioFrame] = None
            with self.io_lock:
                if self.stop_event.is_set() or not self.active_event.is_set():
                    continue
                try:
                    data = self.stream.read(self.chunk_size, exception_on_overflow=False)
                except (IOError, OSError) as e:
                    logger.error(f"Audio input read failed: {e}")
                    self.active_event.clear()
                    error = DeviceUnavailable(f"Audio input failed: {e}")
                else:
                    self.total_frames += 1
                    frame = AudioFrame(
                        data=data,
                        timestamp=time.time(),
                        frame_number=self.total_frames,
                        sample_rate=self.sample_rate,
                        channels=self.channels,
                    )
                    try:
                        self.recording.write(data)
                    except WriteFailure as e:
                        logger.error(f"Recording write failed: {e}")
                        self.active_event.clear()
                        error = e

            if error is not None:
                if self.on_error:
                    self.on_error(error)
                break

            self._deliver(frame)

    def _deliver(self, frame: AudioFrame) -> None:
        sink = self.frame_sink
        if sink is None:
            self.dropped_frames += 1
            return
        try:
            sink(frame)
        except Exception as e:
            self.dropped_frames += 1
            logger.error(f"Frame sink raised: {e}", exc_info=True)

    def get_recording_stats(self) -> AudioStats:
        """Get current capture statistics."""
        return AudioStats(
            is_open=self.is_open,
            is_capturing=self.is_capturing,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_frames=self.total_frames,
            dropped_frames=self.dropped_frames,
            bytes_written=self.recording.bytes_written if self.recording else 0,
        )

    def __del__(self):
        """Ensure resources are released on deletion."""
        if self.recording is not None:
            self.stop()
