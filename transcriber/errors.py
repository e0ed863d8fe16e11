"""Error taxonomy for recording sessions."""


class TranscriberError(Exception):
    """Base class for errors reported by a recording session."""

    code = "TRANSCRIBER_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    def __str__(self) -> str:
        return self.message


class DeviceUnavailable(TranscriberError):
    """No input device, or microphone permission was denied."""

    code = "DEVICE_UNAVAILABLE"


class EngineUnavailable(TranscriberError):
    """The recognition backend cannot continue."""

    code = "ENGINE_UNAVAILABLE"


class WriteFailure(TranscriberError):
    """The recording file could not be created or written."""

    code = "WRITE_FAILURE"


class InvalidTransition(TranscriberError):
    """A command was issued in a state that does not permit it."""

    code = "INVALID_TRANSITION"

    def __init__(self, command: str, state):
        state_name = getattr(state, "value", state)
        super().__init__(f"Cannot {command} while {state_name}")
        self.command = command
        self.state = state
