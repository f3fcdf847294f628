"""Tests for Supabase storage helpers (client mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from postgrest.exceptions import APIError

from src.diarization.errors import AudioNotFoundError, PersistenceError, TalkNotFoundError
from src.diarization.storage import (
    audio_object_path,
    fetch_talk,
    list_utterances,
    resolve_audio_url,
    resolve_language,
    set_diarization_status,
    speaker_samples,
    swap_speaker_tags,
    update_speaker_tag,
)
from src.pipeline_config import DiarizationStatus


def _client_with_rows(rows: list[dict]) -> MagicMock:
    """Mock whose every query chain ends in ``.execute().data == rows``."""
    client = MagicMock()
    result = MagicMock()
    result.data = rows
    table = client.table.return_value
    table.select.return_value.eq.return_value.execute.return_value = result
    table.select.return_value.eq.return_value.order.return_value.execute.return_value = result
    table.select.return_value.eq.return_value.eq.return_value.execute.return_value = result
    table.select.return_value.eq.return_value.not_.is_.return_value.execute.return_value = result
    return client


class TestFetchTalk:
    def test_found(self) -> None:
        client = _client_with_rows([{"id": "t1"}])
        assert fetch_talk(client, "t1") == {"id": "t1"}
        client.table.assert_called_with("talks")

    def test_missing(self) -> None:
        with pytest.raises(TalkNotFoundError):
            fetch_talk(_client_with_rows([]), "t1")


class TestResolveAudioUrl:
    def test_default_object_path(self) -> None:
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.create_signed_url.return_value = {"signedURL": "https://signed/t1"}

        assert resolve_audio_url(client, {"id": "t1"}) == "https://signed/t1"
        path = bucket.create_signed_url.call_args.args[0]
        assert path == audio_object_path("t1")
        assert path.endswith("/t1.webm")

    def test_explicit_audio_path(self) -> None:
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.create_signed_url.return_value = {"signedUrl": "https://signed/x"}

        resolve_audio_url(client, {"id": "t1", "audio_path": "custom/x.webm"})
        assert bucket.create_signed_url.call_args.args[0] == "custom/x.webm"

    def test_storage_error(self) -> None:
        client = MagicMock()
        client.storage.from_.return_value.create_signed_url.side_effect = RuntimeError("Object not found")
        with pytest.raises(AudioNotFoundError):
            resolve_audio_url(client, {"id": "t1"})

    def test_no_url_returned(self) -> None:
        client = MagicMock()
        client.storage.from_.return_value.create_signed_url.return_value = {}
        with pytest.raises(AudioNotFoundError):
            resolve_audio_url(client, {"id": "t1"})


class TestResolveLanguage:
    def test_profile_language(self) -> None:
        client = _client_with_rows([{"language": "en"}])
        assert resolve_language(client, {"id": "t1", "owner_user_id": "u1"}) == "en"

    def test_defaults_without_owner_or_profile(self) -> None:
        with patch("src.diarization.storage.settings") as mock_settings:
            mock_settings.default_language = "ja"
            assert resolve_language(MagicMock(), {"id": "t1"}) == "ja"
            assert resolve_language(_client_with_rows([]), {"id": "t1", "owner_user_id": "u1"}) == "ja"


class TestListUtterances:
    def test_maps_rows_in_order(self) -> None:
        client = _client_with_rows(
            [
                {"id": 1, "original_text": "first", "speaker_tag": None, "created_at": "a"},
                {"id": 2, "original_text": None, "speaker_tag": 2, "created_at": "b"},
            ]
        )
        utterances = list_utterances(client, "t1")
        assert [u.id for u in utterances] == ["1", "2"]
        assert utterances[1].text == ""
        assert utterances[1].speaker_tag == 2
        client.table.return_value.select.return_value.eq.return_value.order.assert_called_once_with(
            "created_at"
        )


class TestUpdateSpeakerTag:
    def test_writes_tag(self) -> None:
        client = MagicMock()
        update_speaker_tag(client, "m1", 2)
        client.table.return_value.update.assert_called_once_with({"speaker_tag": 2})
        client.table.return_value.update.return_value.eq.assert_called_once_with("id", "m1")

    def test_api_error_becomes_persistence_error(self) -> None:
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.side_effect = APIError(
            {"message": "permission denied"}
        )
        with pytest.raises(PersistenceError, match="m1"):
            update_speaker_tag(client, "m1", 1)

    def test_rejects_invalid_tag(self) -> None:
        with pytest.raises(PersistenceError):
            update_speaker_tag(MagicMock(), "m1", 3)


class TestSetDiarizationStatus:
    def test_failure_returns_false(self) -> None:
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.side_effect = APIError(
            {"message": "nope"}
        )
        assert set_diarization_status(client, "t1", DiarizationStatus.FAILED) is False

    def test_success(self) -> None:
        client = MagicMock()
        assert set_diarization_status(client, "t1", DiarizationStatus.COMPLETED) is True
        client.table.return_value.update.assert_called_once_with({"diarization_status": "completed"})


class TestSwapSpeakerTags:
    def test_flips_each_tag(self) -> None:
        client = _client_with_rows([{"id": "m1", "speaker_tag": 1}, {"id": "m2", "speaker_tag": 2}])
        with patch("src.diarization.storage.update_speaker_tag") as update:
            assert swap_speaker_tags(client, "t1") == (2, 2)
        assert [c.args[1:] for c in update.call_args_list] == [("m1", 2), ("m2", 1)]

    def test_failed_write_not_counted(self) -> None:
        client = _client_with_rows([{"id": "m1", "speaker_tag": 1}, {"id": "m2", "speaker_tag": 2}])
        with patch(
            "src.diarization.storage.update_speaker_tag",
            side_effect=[PersistenceError("m1", "x"), None],
        ):
            assert swap_speaker_tags(client, "t1") == (1, 2)


class TestSpeakerSamples:
    def test_groups_by_tag_with_limit(self) -> None:
        client = _client_with_rows(
            [
                {"id": i, "original_text": f"line {i}", "speaker_tag": 1 if i < 5 else 2}
                for i in range(7)
            ]
            + [{"id": 9, "original_text": "unknown", "speaker_tag": None}]
        )
        samples = speaker_samples(client, "t1", limit=3)
        assert samples == {1: ["line 0", "line 1", "line 2"], 2: ["line 5", "line 6"]}
