"""Unit tests for the terminal session screen."""

import io
import pytest
from unittest.mock import Mock
from pubsub import pub
from rich.console import Console

from transcriber.errors import EngineUnavailable
from transcriber.models.session import SessionSnapshot, SessionState
from transcriber.services.recording_session import RecordingSession
from transcriber.ui.session_screen import SessionScreen, render_snapshot


def render_text(snapshot: SessionSnapshot) -> str:
    console = Console(file=io.StringIO(), width=80)
    console.print(render_snapshot(snapshot))
    return console.file.getvalue()


@pytest.fixture
def session(fake_device, fake_engine, recording_path):
    return RecordingSession(fake_device, fake_engine, recording_path)


@pytest.fixture
def screen(session, request):
    topic = f"test.screen.{request.node.name}"
    view = SessionScreen(session, topic=topic, console=Console(file=io.StringIO()))
    yield view
    view.close()


@pytest.mark.unit
class TestRenderSnapshot:

    def test_recording(self):
        text = render_text(SessionSnapshot(SessionState.RECORDING, 65, "hello\n\nworld."))

        assert "Recording" in text
        assert "01:05" in text
        assert "hello" in text
        assert "world." in text

    def test_empty_transcript_placeholder(self):
        text = render_text(SessionSnapshot(SessionState.RECORDING, 0, ""))
        assert "Listening..." in text

    def test_error_is_shown(self):
        text = render_text(SessionSnapshot(SessionState.STOPPED, 3, "partial",
                                           error=EngineUnavailable("backend down")))
        assert "Stopped" in text
        assert "backend down" in text

    @pytest.mark.parametrize("state", list(SessionState))
    def test_every_state_renders(self, state):
        assert render_text(SessionSnapshot(state, 0, "")).strip()


@pytest.mark.unit
class TestSessionScreenKeys:

    def test_space_toggles_pause(self, session, screen):
        session.start()

        assert screen.handle_key(" ") is True
        assert session.state == SessionState.PAUSED
        assert screen.handle_key(" ") is True
        assert session.state == SessionState.RECORDING

    def test_stop_key_ends_screen(self, session, screen):
        session.start()

        assert screen.handle_key("s") is False
        assert session.state == SessionState.STOPPED
        assert screen.done_event.is_set()

    def test_discard_key(self, session, screen):
        session.start()

        assert screen.handle_key("d") is False
        assert session.state == SessionState.DISCARDED

    def test_quit_stops_active_session(self, session, screen):
        session.start()

        assert screen.handle_key("q") is False
        assert session.state == SessionState.STOPPED

    def test_invalid_command_is_ignored(self, session, screen):
        assert screen.handle_key("d") is True
        assert session.state == SessionState.IDLE
        assert not screen.done_event.is_set()

    def test_unknown_key(self, session, screen):
        session.start()
        assert screen.handle_key("x") is True
        assert session.state == SessionState.RECORDING

    def test_snapshots_update_live_view(self, session, screen):
        screen.live = Mock()

        pub.sendMessage(screen.topic, snapshot=session.snapshot())

        screen.live.update.assert_called_once()

    def test_session_ending_on_its_own_closes_view(self, session, screen, fake_engine):
        session.start()
        fake_engine.fail("backend went away")
        assert not screen.done_event.is_set()

        pub.sendMessage(screen.topic, snapshot=session.snapshot())

        assert screen.done_event.is_set()

    def test_active_snapshot_keeps_view_open(self, session, screen):
        session.start()

        pub.sendMessage(screen.topic, snapshot=session.snapshot())

        assert not screen.done_event.is_set()
