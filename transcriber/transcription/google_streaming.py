"""Google Speech-to-Text streaming recognition engine."""

import logging
from typing import Iterator, Optional

from .base import AbstractRecognitionEngine, RecognitionStream
from ..errors import EngineUnavailable
from ..models.transcription import RecognitionUpdate

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleStreamingEngine(AbstractRecognitionEngine):
    """Google Speech-to-Text streaming backend with interim results."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 enable_automatic_punctuation: bool = True,
                 model: str = "latest_long",
                 max_queued_frames: int = 200):
        """Initialize Google streaming engine.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the submitted PCM16 frames
            language: Language code (e.g., 'en-US', 'es-ES')
            enable_automatic_punctuation: Enable automatic punctuation
            model: Recognition model name
            max_queued_frames: Frames buffered per stream before dropping
        """
        super().__init__(language, max_queued_frames)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self.calls_rotated = 0
        self.streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                language_code=self.language,
                enable_automatic_punctuation=self.enable_automatic_punctuation,
                model=model,
            ),
            interim_results=True,
        )

    def initialize(self) -> bool:
        """Create the Speech client from the service account file."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        return True

    def is_available(self) -> bool:
        return self.client is not None

    def _requests(self, stream: RecognitionStream) -> Iterator[speech.StreamingRecognizeRequest]:
        for frame in stream.frames():
            yield speech.StreamingRecognizeRequest(audio_content=frame.data)

    def _run_stream(self, stream: RecognitionStream) -> None:
        # One streaming_recognize call is capped at about five minutes of audio;
        # past the cap the server answers OutOfRange and a new call picks up
        # the remaining frames of the same stream.
        while stream.is_active:
            received = 0
            try:
                responses = self.client.streaming_recognize(
                    config=self.streaming_config,
                    requests=self._requests(stream),
                )
                for response in responses:
                    if not stream.is_active:
                        break
                    received += 1
                    update = self._extract_update(response)
                    if update is not None:
                        stream.deliver(update)
            except gax_exceptions.OutOfRange as e:
                if not stream.is_active:
                    break
                if received:
                    self.calls_rotated += 1
                    logger.info(f"Google stream {stream.stream_id} reached the duration limit, reopening: {e}")
                    continue
                raise EngineUnavailable(f"Google Speech rejected the stream (stream={stream.stream_id}): {e}") from e
            except gax_exceptions.ServiceUnavailable as e:
                raise EngineUnavailable(f"Google Speech service unavailable (stream={stream.stream_id}): {e}") from e
            except gax_exceptions.GoogleAPICallError as e:
                raise EngineUnavailable(f"Google Speech API error (stream={stream.stream_id}): {e}") from e
            logger.debug(f"Google stream {stream.stream_id} call ended after {received} responses")
            return

        logger.debug(f"Google stream {stream.stream_id} drained after cancel")

    def _extract_update(self, response: speech.StreamingRecognizeResponse) -> Optional[RecognitionUpdate]:
        if not response.results:
            return None
        # Interim responses may split the utterance into a stable and an unstable result.
        texts = []
        is_final = False
        for result in response.results:
            if not result.alternatives:
                continue
            texts.append(result.alternatives[0].transcript.strip())
            is_final = is_final or result.is_final
        text = " ".join(t for t in texts if t)
        logger.debug(f"Google update: '{text}' (final={is_final})")
        return RecognitionUpdate(text=text, is_final=is_final)

    def cleanup(self) -> None:
        """Cancel the current stream and drop the client."""
        super().cleanup()
        self.client = None
