"""Session manager that builds recording sessions from configuration."""

import logging
from typing import Optional

from ..audio.capture import AudioCaptureDevice
from ..config import TranscriberConfig
from ..models.session import SessionInfo, SessionState
from ..storage.file_manager import FileManager
from ..transcription.base import AbstractRecognitionEngine
from ..transcription.google_streaming import GoogleStreamingEngine
from .recording_session import RecordingSession, StateCallback, ErrorCallback

logger = logging.getLogger(__name__)


class SessionManager:
    """Creates sessions wired to a capture device, the recognition engine and storage.

    The manager holds no active session; every session it returns is owned
    by the caller.
    """

    def __init__(self, config: TranscriberConfig, engine: Optional[AbstractRecognitionEngine] = None):
        """Initialize session manager.

        Args:
            config: Application configuration
            engine: Recognition engine to share across sessions; created from
                    the Google settings on first use when omitted
        """
        self.config = config
        self.engine = engine
        self.file_manager = FileManager(config.get_data_directory())
        logger.info(f"SessionManager initialized with data dir: {config.get_data_directory()}")

    def create_engine(self) -> GoogleStreamingEngine:
        """Create and initialize the Google streaming engine."""
        credentials_path = self.config.get_google_credentials_path()
        language = self.config.get('google_cloud.language')
        enable_punctuation = self.config.get('google_cloud.enable_automatic_punctuation')
        model = self.config.get('google_cloud.model')

        logger.info("Initializing Google streaming engine...")
        logger.debug(f"Config: language={language}, punctuation={enable_punctuation}, model={model}")

        engine = GoogleStreamingEngine(
            credentials_path=credentials_path,
            sample_rate=self.config.get_audio_settings().sample_rate,
            language=language,
            enable_automatic_punctuation=enable_punctuation,
            model=model,
            max_queued_frames=self.config.get('recognition.queue_size'),
        )
        if not engine.initialize():
            raise RuntimeError("Google streaming engine failed to initialize")

        logger.info("Google streaming engine initialized successfully")
        return engine

    def create_device(self) -> AudioCaptureDevice:
        """Create a capture device from the audio settings."""
        audio = self.config.get_audio_settings()
        return AudioCaptureDevice(
            sample_rate=audio.sample_rate,
            chunk_size=audio.chunk_size,
            channels=audio.channels,
        )

    def new_session(self,
                    on_state_change: Optional[StateCallback] = None,
                    on_error: Optional[ErrorCallback] = None) -> RecordingSession:
        """Build an idle session with a fresh device and recording path."""
        if self.engine is None:
            self.engine = self.create_engine()

        session_id = self.file_manager.create_session_id()
        session = RecordingSession(
            device=self.create_device(),
            engine=self.engine,
            destination=str(self.file_manager.recording_path(session_id)),
            session_id=session_id,
            on_state_change=on_state_change,
            on_error=on_error,
            recognition_timeout=self.config.get_watchdog_seconds(),
        )
        logger.info(f"Created new session: {session_id}")
        return session

    def save_session(self, session: RecordingSession) -> Optional[str]:
        """Save metadata for a stopped session beside its recording.

        Returns:
            Path to the saved session info, or None if the session is not stopped
        """
        snapshot = session.snapshot()
        if snapshot.state != SessionState.STOPPED or session.recording is None:
            logger.warning(f"Not saving session {session.session_id} in state {snapshot.state.value}")
            return None

        stats = session.device.get_recording_stats()
        session_info = SessionInfo(
            session_id=session.session_id,
            start_time=session.started_at,
            duration_seconds=snapshot.elapsed_seconds,
            audio_file=session.recording.path,
            file_size_bytes=session.recording.size_bytes(),
            sample_rate=stats.sample_rate,
            total_frames=stats.total_frames,
            transcript=snapshot.full_text,
            segments=[text for text in snapshot.segments if text],
            error_code=snapshot.error.code if snapshot.error else None,
        )
        return self.file_manager.save_session_info(session_info)

    def cleanup(self) -> None:
        """Release the recognition engine."""
        if self.engine is not None:
            self.engine.cleanup()
