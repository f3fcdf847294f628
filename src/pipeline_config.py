"""Alignment configuration: tuning constants and outcome enums."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MatchMethod(str, Enum):
    """How an utterance's speaker was decided."""

    CONTAINMENT = "containment"
    FALLBACK = "fallback"
    NONE = "none"
    SKIPPED = "skipped"


class DiarizationStatus(str, Enum):
    """Lifecycle values for ``talks.diarization_status``."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class AlignmentConfig:
    """Immutable tuning parameters for the alignment engine.

    ``lookback_words`` bounds how far the containment search may step back
    behind the cursor.  ``containment_slack_chars`` caps how far past the
    needle length a candidate window may grow.  The fallback pass scores
    windows of at most ``fallback_window_words`` words and accepts a match
    only when the similarity is strictly above ``fallback_threshold``.
    """

    lookback_words: int = 10
    containment_slack_chars: int = 50
    fallback_window_words: int = 30
    fallback_threshold: float = 0.3
    max_speakers: int = 2


DEFAULT_ALIGNMENT_CONFIG = AlignmentConfig()
