"""Data models for the speaker attribution engine."""

from __future__ import annotations

from dataclasses import dataclass

from src.pipeline_config import MatchMethod


@dataclass
class Utterance:
    """A stored real-time transcript message awaiting a speaker."""

    id: str
    text: str
    speaker_tag: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class BatchWord:
    """One speaker-labelled word from the offline batch pass.

    ``speaker_label`` is zero-based as produced by the engine; the persisted
    speaker tag is ``speaker_label + 1``.
    """

    text: str
    normalized: str
    speaker_label: int
    start_seconds: float | None = None
    end_seconds: float | None = None


@dataclass(frozen=True)
class AlignmentState:
    """Position in the batch word sequence where the next search begins."""

    cursor: int = 0


@dataclass(frozen=True)
class Attribution:
    """Outcome of aligning a single utterance."""

    method: MatchMethod
    speaker_tag: int | None = None
    match_start: int | None = None
    match_length: int = 0
    similarity: float | None = None

    @property
    def matched(self) -> bool:
        return self.speaker_tag is not None


@dataclass
class DiarizationResult:
    """Counts reported by one orchestrator run."""

    talk_id: str
    updated_count: int = 0
    total_messages: int = 0
    unmatched_count: int = 0
    failed_count: int = 0
    word_count: int = 0
