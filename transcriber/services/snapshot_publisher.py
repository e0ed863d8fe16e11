"""Periodic snapshot publisher for presentation layers."""

import logging
import threading
from typing import Optional
from pubsub import pub

from ..models.session import SessionSnapshot
from .recording_session import RecordingSession

logger = logging.getLogger(__name__)


class SnapshotPublisher:
    """Samples a session on a fixed tick and publishes the snapshot with pubsub.pub.

    The tick also drives the session's recognition watchdog, so presentation
    refresh and audio/recognition cadence stay independent.
    """

    def __init__(self, session: RecordingSession, topic: str = "session.snapshot", interval: float = 1.0):
        """Initialize snapshot publisher.

        Args:
            session: Session to sample
            topic: Pub/sub topic name for snapshots
            interval: Seconds between ticks
        """
        self.session = session
        self.topic = topic
        self.interval = interval
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.ticks = 0
        logger.info(f"SnapshotPublisher initialized with topic: {topic}")

    def start(self) -> None:
        """Start ticking in a background thread."""
        if self.thread is not None:
            return
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._tick_loop, daemon=True)
        self.thread.name = "SnapshotTicker"
        self.thread.start()

    def stop(self) -> None:
        """Stop ticking and publish one last snapshot."""
        self.stop_event.set()
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout=2.0)
        self.thread = None
        self.tick()

    def tick(self) -> SessionSnapshot:
        """Run the watchdog and publish the current snapshot."""
        self.session.check_watchdog()
        snapshot = self.session.snapshot()
        self.ticks += 1
        pub.sendMessage(self.topic, snapshot=snapshot)
        return snapshot

    def _tick_loop(self) -> None:
        while not self.stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error publishing snapshot: {e}", exc_info=True)
