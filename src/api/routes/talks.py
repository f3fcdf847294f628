"""Talk endpoints: end-of-talk hook, diarization, and speaker corrections."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException

from src.api.models import (
    DiarizeResponse,
    EndTalkResponse,
    MessageSpeakerResponse,
    SpeakerInfo,
    SpeakersResponse,
    SpeakerUpdateRequest,
    SwapSpeakersResponse,
)
from src.diarization.errors import (
    AudioNotFoundError,
    PersistenceError,
    RecognitionSubmissionError,
    RecognitionTimeoutError,
    TalkNotFoundError,
)
from src.diarization.orchestrator import run_diarization, run_diarization_in_background
from src.diarization.storage import (
    SPEAKER_TAGS,
    fetch_message,
    fetch_talk,
    get_supabase_client,
    mark_talk_ended,
    speaker_samples,
    swap_speaker_tags,
    update_speaker_tag,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ENDABLE_STATUSES = {"active", "paused"}


def _get_talk_or_404(talk_id: str) -> dict[str, Any]:
    client = get_supabase_client()
    try:
        return fetch_talk(client, talk_id)
    except TalkNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Talk not found") from exc


@router.post("/api/talks/{talk_id}/end", response_model=EndTalkResponse, status_code=202)
async def end_talk(talk_id: str, background_tasks: BackgroundTasks) -> EndTalkResponse:
    """Finish a talk and schedule speaker attribution.

    Diarization runs as a background task after the response is sent; its
    failure never affects this request.
    """
    talk = _get_talk_or_404(talk_id)
    if talk.get("status") not in ENDABLE_STATUSES:
        raise HTTPException(status_code=400, detail="Talk not active")

    updated = mark_talk_ended(get_supabase_client(), talk_id)
    background_tasks.add_task(run_diarization_in_background, talk_id)
    logger.info("Talk %s ended; diarization scheduled", talk_id)

    return EndTalkResponse(talk_id=talk_id, status=str(updated.get("status", "completed")))


@router.post("/api/talks/{talk_id}/diarize", response_model=DiarizeResponse)
async def diarize_talk(talk_id: str) -> DiarizeResponse:
    """Run speaker attribution now and wait for the counts."""
    try:
        # Blocks on the batch engine for up to the configured maximum wait.
        result = await asyncio.to_thread(run_diarization, talk_id)
    except (TalkNotFoundError, AudioNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RecognitionTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except RecognitionSubmissionError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return DiarizeResponse(
        talk_id=talk_id,
        updated_count=result.updated_count,
        total_messages=result.total_messages,
        unmatched_count=result.unmatched_count,
        failed_count=result.failed_count,
    )


@router.post("/api/talks/{talk_id}/swap-speakers", response_model=SwapSpeakersResponse)
async def swap_speakers(talk_id: str) -> SwapSpeakersResponse:
    """Swap speaker 1 and speaker 2 on every attributed message."""
    _get_talk_or_404(talk_id)
    swapped, total = swap_speaker_tags(get_supabase_client(), talk_id)
    return SwapSpeakersResponse(talk_id=talk_id, swapped_count=swapped, total_messages=total)


@router.post(
    "/api/talks/{talk_id}/messages/{message_id}/speaker",
    response_model=MessageSpeakerResponse,
)
async def set_message_speaker(
    talk_id: str,
    message_id: str,
    body: SpeakerUpdateRequest | None = None,
) -> MessageSpeakerResponse:
    """Set, clear, or swap the speaker of one message."""
    client = get_supabase_client()
    message = fetch_message(client, talk_id, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")

    if body is not None and "speaker_tag" in body.model_fields_set:
        new_tag = body.speaker_tag
    else:
        new_tag = 2 if message.get("speaker_tag") == 1 else 1

    try:
        update_speaker_tag(client, message_id, new_tag)
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return MessageSpeakerResponse(id=message_id, speaker_tag=new_tag)


@router.get("/api/talks/{talk_id}/speakers", response_model=SpeakersResponse)
async def get_speakers(talk_id: str) -> SpeakersResponse:
    """Speaker names and a few sample lines per speaker tag."""
    talk = _get_talk_or_404(talk_id)
    samples = speaker_samples(get_supabase_client(), talk_id)
    return SpeakersResponse(
        talk_id=talk_id,
        speakers=[
            SpeakerInfo(
                speaker_tag=tag,
                name=talk.get(f"speaker{tag}_name"),
                samples=samples.get(tag, []),
            )
            for tag in SPEAKER_TAGS
        ],
    )
