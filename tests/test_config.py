"""Tests for Settings, AlignmentConfig, and the outcome enums."""

from __future__ import annotations

import pytest

from src.config import Settings
from src.pipeline_config import (
    DEFAULT_ALIGNMENT_CONFIG,
    AlignmentConfig,
    DiarizationStatus,
    MatchMethod,
)

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestMatchMethod:
    def test_values(self) -> None:
        assert MatchMethod.CONTAINMENT.value == "containment"
        assert MatchMethod.FALLBACK.value == "fallback"
        assert MatchMethod.NONE.value == "none"
        assert MatchMethod.SKIPPED.value == "skipped"

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(MatchMethod.FALLBACK, str)


class TestDiarizationStatus:
    def test_from_string(self) -> None:
        assert DiarizationStatus("processing") is DiarizationStatus.PROCESSING

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            DiarizationStatus("invalid")


# ---------------------------------------------------------------------------
# AlignmentConfig tests
# ---------------------------------------------------------------------------


class TestAlignmentConfig:
    def test_defaults(self) -> None:
        cfg = AlignmentConfig()
        assert cfg.lookback_words == 10
        assert cfg.containment_slack_chars == 50
        assert cfg.fallback_window_words == 30
        assert cfg.fallback_threshold == 0.3
        assert cfg.max_speakers == 2
        assert cfg == DEFAULT_ALIGNMENT_CONFIG

    def test_immutable(self) -> None:
        cfg = AlignmentConfig()
        with pytest.raises(AttributeError):
            cfg.fallback_threshold = 0.5  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Settings tests
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("DIARIZATION_MAX_WAIT_SECONDS", "SPEAKER_COUNT", "AUDIO_PREFIX"):
            monkeypatch.delenv(name, raising=False)
        cfg = Settings(_env_file=None)  # type: ignore[call-arg]
        assert cfg.diarization_max_wait_seconds == 300.0
        assert cfg.speaker_count == 2
        assert cfg.audio_prefix == "audio-files"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DIARIZATION_MAX_WAIT_SECONDS", "60")
        monkeypatch.setenv("DEFAULT_LANGUAGE", "en")
        cfg = Settings(_env_file=None)  # type: ignore[call-arg]
        assert cfg.diarization_max_wait_seconds == 60.0
        assert cfg.default_language == "en"
