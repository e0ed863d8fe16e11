"""Single-key terminal input for session commands."""

import sys
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

KeyCallback = Callable[[str], bool]


class KeyboardInputHandler:
    """Feeds single keypresses from the terminal to a command callback.

    The callback runs on the reader thread and returns False to end reading.
    On Unix the terminal stays in cbreak mode while reading, so Ctrl-C still
    raises KeyboardInterrupt in the main thread.
    """

    def __init__(self, callback: KeyCallback, poll_interval: float = 0.1):
        self.callback = callback
        self.poll_interval = poll_interval
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self.thread is not None and not self.stop_event.is_set()

    def start(self) -> None:
        if self.thread is not None:
            return
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._read_loop, daemon=True)
        self.thread.name = "KeyboardInput"
        self.thread.start()
        logger.info("Keyboard input started")

    def stop(self) -> None:
        self.stop_event.set()
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        self.thread = None
        logger.info("Keyboard input stopped")

    def dispatch(self, key: str) -> bool:
        """Hand one key to the callback; returns False once reading should end."""
        logger.debug(f"Key pressed: {key!r}")
        if self.callback(key):
            return True
        self.stop_event.set()
        return False

    def _read_loop(self) -> None:
        if sys.platform == "win32":
            self._read_windows()
        else:
            self._read_unix()
        logger.debug("Keyboard read loop ended")

    def _read_windows(self) -> None:
        import msvcrt

        while not self.stop_event.wait(self.poll_interval):
            while msvcrt.kbhit():
                key = msvcrt.getwch().lower()
                if not self.dispatch(key):
                    return

    def _read_unix(self) -> None:
        import select
        import termios
        import tty

        if not sys.stdin.isatty():
            logger.warning("stdin is not a terminal; keyboard commands disabled")
            return

        fd = sys.stdin.fileno()
        saved = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            while not self.stop_event.is_set():
                readable, _, _ = select.select([sys.stdin], [], [], self.poll_interval)
                if readable and not self.dispatch(sys.stdin.read(1).lower()):
                    return
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
