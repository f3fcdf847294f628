"""Exception hierarchy for speaker attribution runs."""

from __future__ import annotations


class DiarizationError(Exception):
    """Base class for every diarization failure."""


class TalkNotFoundError(DiarizationError):
    """The conversation row does not exist."""


class AudioNotFoundError(DiarizationError):
    """The conversation has no resolvable audio recording."""


class RecognitionSubmissionError(DiarizationError):
    """The batch speech engine rejected the job or could not be reached."""


class RecognitionTimeoutError(DiarizationError):
    """The batch job did not finish within the configured maximum wait."""


class EmptyResultError(DiarizationError):
    """Recognition finished but returned nothing usable.

    Soft failure: the orchestrator completes the run with zero updates.
    """


class PersistenceError(DiarizationError):
    """A single speaker tag write failed.

    Soft failure: logged and counted, the run carries on with the next
    utterance.
    """

    def __init__(self, message_id: str, detail: str) -> None:
        super().__init__(f"Failed to update message {message_id}: {detail}")
        self.message_id = message_id
