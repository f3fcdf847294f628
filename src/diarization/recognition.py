"""Batch recognition result model and payload parsers.

Two payload shapes are understood:

AssemblyAI transcript JSON (times in milliseconds, speakers as letters)::

    {"utterances": [{"speaker": "A", "text": "...",
                     "words": [{"text": "...", "speaker": "A", "start": ms, "end": ms}]}]}

Google Speech JSON (segments -> alternatives -> words)::

    {"results": [{"alternatives": [{"transcript": "...",
                  "words": [{"word": "...", "speakerLabel": "1",
                             "startOffset": "1.5s", "endOffset": "1.9s"}]}]}]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from src.diarization.errors import EmptyResultError


@dataclass(frozen=True)
class SpeakerLabel:
    """Speaker identity delivered as a string (e.g. ``"0"``)."""

    value: str

    def resolve(self) -> int | None:
        try:
            return int(self.value.strip())
        except ValueError:
            return None


@dataclass(frozen=True)
class SpeakerTag:
    """Speaker identity delivered as an integer."""

    value: int

    def resolve(self) -> int | None:
        return self.value


SpeakerIdentity = Union[SpeakerLabel, SpeakerTag]


@dataclass(frozen=True)
class RecognizedWord:
    text: str
    speaker: SpeakerIdentity | None = None
    start_seconds: float | None = None
    end_seconds: float | None = None


@dataclass(frozen=True)
class RecognitionAlternative:
    transcript: str = ""
    words: list[RecognizedWord] = field(default_factory=list)


@dataclass(frozen=True)
class RecognitionSegment:
    alternatives: list[RecognitionAlternative] = field(default_factory=list)


@dataclass(frozen=True)
class RecognitionResult:
    """Engine-agnostic batch transcription: segments of ranked alternatives."""

    segments: list[RecognitionSegment] = field(default_factory=list)


def _speaker_from_letter(speaker: Any) -> SpeakerIdentity | None:
    """Map AssemblyAI speaker letters ("A", "B", ...) to zero-based labels."""
    if speaker is None:
        return None
    if isinstance(speaker, int):
        return SpeakerTag(speaker)
    letter = str(speaker).strip().upper()
    if len(letter) == 1 and "A" <= letter <= "Z":
        return SpeakerLabel(str(ord(letter) - ord("A")))
    return SpeakerLabel(letter)


def _ms_to_seconds(value: Any) -> float | None:
    if value is None:
        return None
    return float(value) / 1000.0


def _parse_assemblyai(data: dict[str, Any]) -> RecognitionResult:
    utterances = data.get("utterances")
    segments: list[RecognitionSegment] = []

    if utterances:
        groups = [(u.get("text", ""), u.get("words") or [], u.get("speaker")) for u in utterances]
    else:
        # No utterance grouping (speaker_labels off or very short audio)
        groups = [(data.get("text") or "", data.get("words") or [], None)]

    for transcript, raw_words, utterance_speaker in groups:
        words = [
            RecognizedWord(
                text=w.get("text", ""),
                speaker=_speaker_from_letter(w.get("speaker", utterance_speaker)),
                start_seconds=_ms_to_seconds(w.get("start")),
                end_seconds=_ms_to_seconds(w.get("end")),
            )
            for w in raw_words
        ]
        segments.append(
            RecognitionSegment(
                alternatives=[RecognitionAlternative(transcript=transcript or "", words=words)]
            )
        )
    return RecognitionResult(segments=segments)


def _parse_offset(value: Any) -> float | None:
    """Parse a protobuf Duration rendered as ``"1.5s"``, a number, or a dict."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, dict):
        seconds = float(value.get("seconds", 0) or 0)
        nanos = float(value.get("nanos", 0) or 0)
        return seconds + nanos / 1e9
    text = str(value).strip()
    if text.endswith("s"):
        text = text[:-1]
    try:
        return float(text)
    except ValueError:
        return None


def _google_speaker(word: dict[str, Any]) -> SpeakerIdentity | None:
    label = word.get("speakerLabel")
    if label is not None and label != "":
        return SpeakerLabel(str(label))
    tag = word.get("speakerTag")
    if isinstance(tag, int) and not isinstance(tag, bool):
        return SpeakerTag(tag)
    return None


def _parse_google(data: dict[str, Any]) -> RecognitionResult:
    segments: list[RecognitionSegment] = []
    for result in data.get("results") or []:
        alternatives = [
            RecognitionAlternative(
                transcript=alt.get("transcript", ""),
                words=[
                    RecognizedWord(
                        text=w.get("word", ""),
                        speaker=_google_speaker(w),
                        start_seconds=_parse_offset(w.get("startOffset", w.get("startTime"))),
                        end_seconds=_parse_offset(w.get("endOffset", w.get("endTime"))),
                    )
                    for w in alt.get("words") or []
                ],
            )
            for alt in result.get("alternatives") or []
        ]
        segments.append(RecognitionSegment(alternatives=alternatives))
    return RecognitionResult(segments=segments)


def parse_recognition_payload(data: dict[str, Any]) -> RecognitionResult:
    """Build a :class:`RecognitionResult` from a raw engine response.

    Raises:
        EmptyResultError: If the payload matches no known result shape.
    """
    if not isinstance(data, dict):
        msg = f"Recognition payload must be an object, got {type(data).__name__}"
        raise EmptyResultError(msg)

    if "utterances" in data or "words" in data:
        return _parse_assemblyai(data)
    if "results" in data:
        return _parse_google(data)

    msg = f"Unrecognized recognition payload. Keys: {list(data.keys())}"
    raise EmptyResultError(msg)
