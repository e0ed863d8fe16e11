"""Terminal user interface for Transcriber."""

from .keyboard_input import KeyboardInputHandler
from .session_screen import SessionScreen, render_snapshot

__all__ = [
    "KeyboardInputHandler",
    "SessionScreen",
    "render_snapshot",
]
