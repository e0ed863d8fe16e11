"""Terminal screen that renders session snapshots and maps keys to commands."""

import logging
import threading
from typing import Optional

from pubsub import pub
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..errors import InvalidTransition, TranscriberError
from ..models.session import SessionSnapshot, SessionState
from ..services.recording_session import RecordingSession

logger = logging.getLogger(__name__)

STATE_STYLES = {
    SessionState.IDLE: ("Ready", "bold blue"),
    SessionState.RECORDING: ("Recording", "bold red"),
    SessionState.PAUSED: ("Paused", "bold yellow"),
    SessionState.STOPPED: ("Stopped", "bold green"),
    SessionState.DISCARDED: ("Discarded", "dim"),
}

HELP_TEXT = "[space] pause/resume   [s] stop   [d] discard   [q] quit"


def render_snapshot(snapshot: SessionSnapshot) -> Panel:
    """Build the renderable for one snapshot."""
    label, style = STATE_STYLES[snapshot.state]
    header = Text.assemble((f"{label}  ", style), (snapshot.elapsed_display, "bold"))

    transcript = Text(snapshot.full_text or "Listening...",
                      style="dim" if snapshot.state == SessionState.PAUSED else "")

    parts = [header, Text(""), transcript]
    if snapshot.error is not None:
        parts += [Text(""), Text(f"Error: {snapshot.error}", style="bold red")]
    parts += [Text(""), Text(HELP_TEXT, style="dim")]
    return Panel(Group(*parts), title="Transcriber", border_style=style)


class SessionScreen:
    """Live view of one session, refreshed from published snapshots."""

    def __init__(self, session: RecordingSession, topic: str = "session.snapshot",
                 console: Optional[Console] = None):
        self.session = session
        self.topic = topic
        self.console = console or Console()
        self.live: Optional[Live] = None
        self.done_event = threading.Event()
        pub.subscribe(self.on_snapshot, topic)

    def on_snapshot(self, snapshot: SessionSnapshot) -> None:
        if self.live is not None:
            self.live.update(render_snapshot(snapshot))
        # Sessions also end on their own (engine, device or write failure, watchdog)
        if snapshot.state.is_terminal:
            self.done_event.set()

    def handle_key(self, key: str) -> bool:
        """Run the command bound to ``key``; returns False when the screen should close."""
        try:
            if key == " ":
                if self.session.state == SessionState.RECORDING:
                    self.session.pause()
                else:
                    self.session.resume()
            elif key == "s":
                self.session.stop()
            elif key == "d":
                self.session.discard()
            elif key in ("q", "\x03"):
                if self.session.state in (SessionState.RECORDING, SessionState.PAUSED):
                    self.session.stop()
                self.done_event.set()
                return False
        except InvalidTransition as e:
            logger.info(f"Ignored key {key!r}: {e}")
        except TranscriberError as e:
            logger.error(f"Command for key {key!r} failed: {e}")

        self.on_snapshot(self.session.snapshot())
        if self.session.state.is_terminal:
            self.done_event.set()
            return False
        return True

    def run(self) -> None:
        """Show the live view until the session ends."""
        with Live(render_snapshot(self.session.snapshot()), console=self.console,
                  refresh_per_second=4) as live:
            self.live = live
            self.done_event.wait()
            live.update(render_snapshot(self.session.snapshot()))
        self.live = None

    def close(self) -> None:
        pub.unsubscribe(self.on_snapshot, self.topic)
