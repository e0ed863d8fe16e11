"""Integration tests for a recording session over the real capture device."""

import os
import wave
import pytest

from conftest import wait_for
from transcriber.audio.capture import AudioCaptureDevice
from transcriber.errors import DeviceUnavailable
from transcriber.models.session import SessionState
from transcriber.services.recording_session import RecordingSession


@pytest.fixture
def device():
    capture = AudioCaptureDevice(sample_rate=16000, chunk_size=1024)
    yield capture
    capture.stop()


@pytest.fixture
def session(mock_pyaudio, device, fake_engine, recording_path):
    return RecordingSession(device, fake_engine, recording_path)


@pytest.mark.integration
class TestSessionRecordingIntegration:
    """Capture thread, recognition worker and session state machine together."""

    def test_record_pause_resume_stop(self, session, device, fake_engine, recording_path):
        session.start()
        assert wait_for(lambda: len(fake_engine.received_frames) >= 2)
        fake_engine.emit("hel")
        fake_engine.emit("hello")

        session.pause()
        assert session.state == SessionState.PAUSED
        assert not device.is_capturing

        session.resume()
        assert wait_for(lambda: fake_engine.current_stream.submitted_frames >= 1)
        fake_engine.emit("world.", is_final=True)

        snapshot = session.stop()

        assert snapshot.state == SessionState.STOPPED
        assert snapshot.full_text == "hello\n\nworld."
        assert snapshot.segments == ("hello", "world.", "")
        assert snapshot.recording_path == recording_path
        assert fake_engine.begin_calls == 2
        with wave.open(recording_path, 'rb') as wf:
            assert wf.getframerate() == 16000
            assert wf.getnframes() == device.total_frames * 1024
            assert wf.getnframes() > 0

    def test_discard_removes_recording(self, session, fake_engine, recording_path):
        session.start()
        assert wait_for(lambda: len(fake_engine.received_frames) >= 1)
        fake_engine.emit("throw this away")

        session.discard()

        assert session.state == SessionState.DISCARDED
        assert session.full_text() == ""
        assert not os.path.exists(recording_path)
        assert session.snapshot().recording_path is None

    def test_engine_failure_mid_session(self, session, device, fake_engine, recording_path):
        session.start()
        fake_engine.emit("kept so far")

        fake_engine.fail("backend went away")

        assert session.state == SessionState.STOPPED
        assert session.error.code == "ENGINE_UNAVAILABLE"
        assert session.full_text() == "kept so far"
        assert not device.is_open
        assert os.path.exists(recording_path)

    def test_microphone_failure_stops_session(self, mock_pyaudio, session, device, fake_engine, recording_path):
        errors = []
        session.on_error = errors.append
        session.start()
        assert wait_for(lambda: device.total_frames >= 1)

        mock_pyaudio['stream'].read.side_effect = OSError("device unplugged")

        assert wait_for(lambda: session.state == SessionState.STOPPED)
        assert isinstance(session.error, DeviceUnavailable)
        assert isinstance(errors[0], DeviceUnavailable)
        assert not device.is_open
        with wave.open(recording_path, 'rb') as wf:
            assert wf.getnframes() == device.total_frames * 1024

    def test_no_input_device(self, mock_pyaudio, session, fake_engine, recording_path):
        mock_pyaudio['instance'].get_default_input_device_info.side_effect = OSError("no device")

        with pytest.raises(DeviceUnavailable):
            session.start()

        assert session.state == SessionState.IDLE
        assert fake_engine.begin_calls == 0
        assert not os.path.exists(recording_path)

    def test_input_stream_start_failure_releases_everything(self, mock_pyaudio, session, device,
                                                            fake_engine, recording_path):
        mock_pyaudio['stream'].start_stream.side_effect = OSError("Device unavailable")

        with pytest.raises(DeviceUnavailable):
            session.start()

        assert session.state == SessionState.IDLE
        assert isinstance(session.error, DeviceUnavailable)
        assert not device.is_open
        assert not os.path.exists(recording_path)
        assert not fake_engine.current_stream.is_active

        # The device was released, so a retry can open it again
        mock_pyaudio['stream'].start_stream.side_effect = None
        session.start()
        assert session.state == SessionState.RECORDING

    def test_input_stream_resume_failure_stops_session(self, mock_pyaudio, session, device,
                                                       fake_engine, recording_path):
        errors = []
        session.on_error = errors.append
        session.start()
        fake_engine.emit("before the pause")
        session.pause()
        mock_pyaudio['stream'].start_stream.side_effect = OSError("Device unavailable")

        with pytest.raises(DeviceUnavailable):
            session.resume()

        assert session.state == SessionState.STOPPED
        assert isinstance(session.error, DeviceUnavailable)
        assert errors == [session.error]
        assert session.full_text() == "before the pause"
        assert not device.is_open
        assert not fake_engine.current_stream.is_active
        assert os.path.exists(recording_path)

    def test_input_stream_pause_failure_stops_session(self, mock_pyaudio, session, device,
                                                      fake_engine, recording_path):
        session.start()
        mock_pyaudio['stream'].stop_stream.side_effect = OSError("Stream closed")

        with pytest.raises(DeviceUnavailable):
            session.pause()

        assert session.state == SessionState.STOPPED
        assert isinstance(session.error, DeviceUnavailable)
        assert not device.is_open
        assert not fake_engine.current_stream.is_active
        assert os.path.exists(recording_path)
