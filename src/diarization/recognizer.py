"""Batch, diarization-enabled speech recognition via AssemblyAI."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Protocol

from src.config import settings
from src.diarization.errors import RecognitionSubmissionError, RecognitionTimeoutError
from src.diarization.recognition import RecognitionResult, parse_recognition_payload

logger = logging.getLogger(__name__)

# Language hints accepted by the batch engine; anything else falls back to the default.
SUPPORTED_LANGUAGES = {"ja", "en", "es", "fr", "de", "zh", "ko"}


class BatchRecognizer(Protocol):
    """Anything able to turn an audio URL into a speaker-labelled result."""

    def recognize(self, audio_url: str, language: str) -> RecognitionResult: ...


def resolve_language_code(language: str | None, default: str | None = None) -> str:
    """Map a profile language (``"ja"``, ``"en-US"``, ...) to an engine code."""
    fallback = default or settings.default_language
    if not language:
        return fallback
    code = language.strip().lower().replace("_", "-").split("-", 1)[0]
    return code if code in SUPPORTED_LANGUAGES else fallback


class AssemblyAIRecognizer:
    """Submit audio for batch transcription with speaker labels and wait for it.

    The wait is bounded by ``max_wait_seconds``; a job that is still running
    after that is abandoned (the engine offers no cancellation).
    """

    def __init__(
        self,
        api_key: str,
        max_wait_seconds: float = 300.0,
        poll_interval_seconds: float = 3.0,
        speaker_count: int = 2,
    ) -> None:
        self.api_key = api_key
        self.max_wait_seconds = max_wait_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.speaker_count = speaker_count

    @classmethod
    def from_settings(cls) -> AssemblyAIRecognizer:
        return cls(
            api_key=settings.assemblyai_api_key,
            max_wait_seconds=settings.diarization_max_wait_seconds,
            poll_interval_seconds=settings.diarization_poll_interval_seconds,
            speaker_count=settings.speaker_count,
        )

    def recognize(self, audio_url: str, language: str) -> RecognitionResult:
        """Transcribe *audio_url* and return the parsed result.

        Raises:
            RecognitionSubmissionError: Missing key, transport failure, or the
                engine reported an error for the job.
            RecognitionTimeoutError: The job did not finish in time.
            EmptyResultError: The finished job carried no usable body.
        """
        if not self.api_key:
            raise RecognitionSubmissionError("AssemblyAI API key is not configured")

        import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

        aai.settings.api_key = self.api_key
        aai.settings.polling_interval = self.poll_interval_seconds
        config = aai.TranscriptionConfig(
            speaker_labels=True,
            speakers_expected=self.speaker_count,
            language_code=resolve_language_code(language),
        )
        transcriber = aai.Transcriber()

        logger.info("Submitting batch recognition for %s (language=%s)", audio_url, language)
        try:
            future = transcriber.transcribe_async(audio_url, config=config)
            transcript = future.result(timeout=self.max_wait_seconds)
        except concurrent.futures.TimeoutError as exc:
            msg = f"Batch recognition did not finish within {self.max_wait_seconds:.0f}s"
            raise RecognitionTimeoutError(msg) from exc
        except Exception as exc:
            # Invalid API key, network failure, provider outage.
            raise RecognitionSubmissionError(f"Batch recognition failed: {exc}") from exc

        if transcript.status == aai.TranscriptStatus.error:
            raise RecognitionSubmissionError(f"Batch recognition failed: {transcript.error}")

        logger.info("Batch recognition %s completed", transcript.id)
        payload: dict[str, Any] = transcript.json_response or {}
        return parse_recognition_payload(payload)
