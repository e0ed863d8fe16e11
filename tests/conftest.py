"""Pytest configuration and fixtures for Transcriber tests."""

import pytest
import tempfile
import time
import logging
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock, patch
import numpy as np

from transcriber.audio.recording_file import RecordingFile
from transcriber.errors import EngineUnavailable, WriteFailure
from transcriber.models.audio import AudioFrame, AudioStats
from transcriber.models.transcription import RecognitionUpdate
from transcriber.transcription.base import AbstractRecognitionEngine, RecognitionStream


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    parser.addoption("--run-hardware", action="store_true", default=False,
                     help="Run tests that need a real microphone")


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests wiring several components")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-hardware"):
        return
    skip_hardware = pytest.mark.skip(reason="needs --run-hardware")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRecognitionEngine(AbstractRecognitionEngine):
    """Engine whose updates are scripted by the test.

    The worker only drains submitted frames; ``emit`` and ``fail`` deliver
    synchronously on the calling thread through the real stream handle.
    """

    def __init__(self, available: bool = True):
        super().__init__(language="en-US", max_queued_frames=50)
        self.available = available
        self.begin_calls = 0
        self.received_frames: List[AudioFrame] = []

    def is_available(self) -> bool:
        return self.available

    def begin(self, on_update, on_error) -> RecognitionStream:
        self.begin_calls += 1
        return super().begin(on_update, on_error)

    def _run_stream(self, stream: RecognitionStream) -> None:
        for frame in stream.frames(poll_interval=0.01):
            self.received_frames.append(frame)

    def emit(self, text: str, is_final: bool = False) -> bool:
        assert self.current_stream is not None
        return self.current_stream.deliver(RecognitionUpdate(text=text, is_final=is_final))

    def fail(self, message: str = "backend unreachable") -> None:
        assert self.current_stream is not None
        self.current_stream.fail(EngineUnavailable(message))


class FakeCaptureDevice:
    """Capture device double that writes real recording files without audio hardware."""

    def __init__(self, open_error: Optional[Exception] = None, start_error: Optional[Exception] = None):
        self.open_error = open_error
        self.start_error = start_error
        self.frame_sink = None
        self.on_error = None
        self.recording: Optional[RecordingFile] = None
        self.capturing = False
        self.total_frames = 0
        self.calls: List[str] = []

    @property
    def is_open(self) -> bool:
        return self.recording is not None

    def set_frame_sink(self, sink) -> None:
        self.frame_sink = sink

    def open(self, destination: str) -> RecordingFile:
        self.calls.append("open")
        if self.open_error is not None:
            raise self.open_error
        self.recording = RecordingFile(destination)
        return self.recording

    def start(self) -> None:
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error
        self.capturing = True

    def pause(self) -> None:
        self.calls.append("pause")
        self.capturing = False

    def resume(self) -> None:
        self.calls.append("resume")
        self.capturing = True

    def stop(self) -> Optional[RecordingFile]:
        self.calls.append("stop")
        recording, self.recording = self.recording, None
        self.capturing = False
        if recording is not None:
            recording.close()
        return recording

    def push_frame(self, data: bytes = b'\x00' * 2048) -> AudioFrame:
        self.total_frames += 1
        frame = AudioFrame(data=data, timestamp=time.time(), frame_number=self.total_frames)
        if self.capturing and self.recording is not None:
            self.recording.write(data)
        if self.frame_sink is not None:
            self.frame_sink(frame)
        return frame

    def fail_write(self, message: str = "disk full") -> None:
        self.capturing = False
        self.on_error(WriteFailure(message))

    def get_recording_stats(self) -> AudioStats:
        return AudioStats(
            is_open=self.is_open,
            is_capturing=self.capturing,
            sample_rate=16000,
            chunk_size=1024,
            total_frames=self.total_frames,
            dropped_frames=0,
            bytes_written=self.recording.bytes_written if self.recording else 0,
        )


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_engine():
    engine = FakeRecognitionEngine()
    yield engine
    engine.cleanup()


@pytest.fixture
def fake_device():
    return FakeCaptureDevice()


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read(num_frames, exception_on_overflow=True):
            # Real reads block for the duration of one buffer
            time.sleep(0.005)
            return sample_audio_chunk

        # Configure mock stream
        mock_stream.read.side_effect = read
        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_default_input_device_info.return_value = {"name": "Mock Microphone"}

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def recording_path(temp_data_dir) -> str:
    return str(Path(temp_data_dir) / "recording_test.wav")
