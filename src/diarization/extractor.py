"""Flatten a batch recognition result into speaker-labelled words."""

from __future__ import annotations

import logging

from src.diarization.models import BatchWord
from src.diarization.normalizer import normalize
from src.diarization.recognition import RecognitionResult
from src.pipeline_config import DEFAULT_ALIGNMENT_CONFIG

logger = logging.getLogger(__name__)


def extract_batch_words(
    result: RecognitionResult,
    max_speakers: int = DEFAULT_ALIGNMENT_CONFIG.max_speakers,
) -> list[BatchWord]:
    """Return the words of *result* in recognition order.

    Only the top alternative of each segment is read.  Words with empty
    text, no resolvable speaker, or a speaker label outside
    ``[0, max_speakers)`` are dropped.  An empty list is a valid outcome
    meaning no attribution is possible for this pass.
    """
    words: list[BatchWord] = []
    dropped = 0

    for segment in result.segments:
        if not segment.alternatives:
            continue
        for word in segment.alternatives[0].words:
            label = word.speaker.resolve() if word.speaker is not None else None
            if not word.text or label is None:
                dropped += 1
                continue
            if not 0 <= label < max_speakers:
                dropped += 1
                continue
            words.append(
                BatchWord(
                    text=word.text,
                    normalized=normalize(word.text),
                    speaker_label=label,
                    start_seconds=word.start_seconds,
                    end_seconds=word.end_seconds,
                )
            )

    if dropped:
        logger.debug("Dropped %d words without a usable speaker label", dropped)
    return words
