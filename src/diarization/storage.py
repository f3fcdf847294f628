"""Supabase helpers for talks, their messages, and recorded audio."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.config import settings
from src.diarization.errors import AudioNotFoundError, PersistenceError, TalkNotFoundError
from src.diarization.models import Utterance
from src.pipeline_config import DiarizationStatus

logger = logging.getLogger(__name__)

SPEAKER_TAGS = (1, 2)


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def fetch_talk(client: Client, talk_id: str) -> dict[str, Any]:
    """Return the talk row or raise :class:`TalkNotFoundError`."""
    result = client.table("talks").select("*").eq("id", talk_id).execute()
    if not result.data:
        raise TalkNotFoundError(f"Talk not found: {talk_id}")
    row: dict[str, Any] = result.data[0]
    return row


def audio_object_path(talk_id: str) -> str:
    return f"{settings.audio_prefix}/{talk_id}.{settings.audio_extension}"


def resolve_audio_url(client: Client, talk: dict[str, Any]) -> str:
    """Return a time-limited URL the speech engine can download the recording from.

    Raises:
        AudioNotFoundError: The storage object is missing or cannot be signed.
    """
    path = talk.get("audio_path") or audio_object_path(talk["id"])
    try:
        signed = client.storage.from_(settings.audio_bucket).create_signed_url(
            path, settings.signed_url_expiry_seconds
        )
    except Exception as exc:
        raise AudioNotFoundError(f"No audio for talk {talk['id']} at {path}: {exc}") from exc

    url = (signed or {}).get("signedURL") or (signed or {}).get("signedUrl")
    if not url:
        raise AudioNotFoundError(f"No audio for talk {talk['id']} at {path}")
    return str(url)


def resolve_language(client: Client, talk: dict[str, Any]) -> str:
    """Language hint for recognition: the owner's profile language, else the default."""
    owner_id = talk.get("owner_user_id")
    if not owner_id:
        return settings.default_language
    result = client.table("user_profiles").select("language").eq("id", owner_id).execute()
    if result.data and result.data[0].get("language"):
        return str(result.data[0]["language"])
    return settings.default_language


def list_utterances(client: Client, talk_id: str) -> list[Utterance]:
    """All messages of a talk in chronological order."""
    result = (
        client.table("talk_messages")
        .select("id, original_text, speaker_tag, created_at")
        .eq("talk_id", talk_id)
        .order("created_at")
        .execute()
    )
    return [
        Utterance(
            id=str(row["id"]),
            text=row.get("original_text") or "",
            speaker_tag=row.get("speaker_tag"),
            created_at=row.get("created_at"),
        )
        for row in result.data
    ]


def fetch_message(client: Client, talk_id: str, message_id: str) -> dict[str, Any] | None:
    result = (
        client.table("talk_messages")
        .select("id, speaker_tag")
        .eq("id", message_id)
        .eq("talk_id", talk_id)
        .execute()
    )
    return result.data[0] if result.data else None


def update_speaker_tag(client: Client, message_id: str, speaker_tag: int | None) -> None:
    """Persist one message's speaker tag.

    Raises:
        PersistenceError: The write was rejected.
    """
    if speaker_tag is not None and speaker_tag not in SPEAKER_TAGS:
        raise PersistenceError(message_id, f"invalid speaker tag {speaker_tag!r}")
    try:
        client.table("talk_messages").update({"speaker_tag": speaker_tag}).eq(
            "id", message_id
        ).execute()
    except APIError as exc:
        raise PersistenceError(message_id, str(exc.message or exc)) from exc


def set_diarization_status(client: Client, talk_id: str, status: DiarizationStatus) -> bool:
    """Record the diarization lifecycle on the talk. Returns False if the write failed."""
    try:
        client.table("talks").update({"diarization_status": status.value}).eq(
            "id", talk_id
        ).execute()
    except APIError as exc:
        logger.warning("Could not set diarization_status=%s for talk %s: %s", status.value, talk_id, exc)
        return False
    return True


def mark_talk_ended(client: Client, talk_id: str) -> dict[str, Any]:
    """Move a talk to ``completed`` and queue it for diarization."""
    update = {
        "status": "completed",
        "ended_at": datetime.now(UTC).isoformat(),
        "is_paused": False,
        "paused_at": None,
        "diarization_status": DiarizationStatus.PENDING.value,
    }
    result = client.table("talks").update(update).eq("id", talk_id).execute()
    row: dict[str, Any] = result.data[0] if result.data else {"id": talk_id, **update}
    return row


def swap_speaker_tags(client: Client, talk_id: str) -> tuple[int, int]:
    """Flip every assigned speaker tag of a talk (1 <-> 2).

    Returns:
        ``(swapped_count, total_messages)`` where the total only counts
        messages that had a tag.
    """
    result = (
        client.table("talk_messages")
        .select("id, speaker_tag")
        .eq("talk_id", talk_id)
        .not_.is_("speaker_tag", "null")
        .execute()
    )
    messages = result.data or []

    swapped = 0
    for message in messages:
        new_tag = 2 if message["speaker_tag"] == 1 else 1
        try:
            update_speaker_tag(client, str(message["id"]), new_tag)
        except PersistenceError:
            logger.exception("Swap failed for message %s", message["id"])
            continue
        swapped += 1

    logger.info("Swapped %d/%d speaker tags for talk %s", swapped, len(messages), talk_id)
    return swapped, len(messages)


def speaker_samples(client: Client, talk_id: str, limit: int = 3) -> dict[int, list[str]]:
    """Up to *limit* non-empty sample utterances per speaker tag."""
    samples: dict[int, list[str]] = {tag: [] for tag in SPEAKER_TAGS}
    for utterance in list_utterances(client, talk_id):
        tag = utterance.speaker_tag
        text = utterance.text.strip()
        if tag in samples and text and len(samples[tag]) < limit:
            samples[tag].append(text)
    return samples
