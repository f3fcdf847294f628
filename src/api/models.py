"""Pydantic request/response schemas for the talk diarization API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from src.pipeline_config import DiarizationStatus


class DiarizeResponse(BaseModel):
    """Response body for the /api/talks/{id}/diarize endpoint."""

    talk_id: str
    updated_count: int
    total_messages: int
    unmatched_count: int = 0
    failed_count: int = 0


class EndTalkResponse(BaseModel):
    """Response body for the /api/talks/{id}/end endpoint.

    Diarization runs after the response is sent; poll the talk's
    ``diarization_status`` to follow it.
    """

    talk_id: str
    status: str
    diarization_status: DiarizationStatus = DiarizationStatus.PENDING


class SwapSpeakersResponse(BaseModel):
    talk_id: str
    swapped_count: int
    total_messages: int


class SpeakerUpdateRequest(BaseModel):
    """Body for setting one message's speaker.

    Omitting ``speaker_tag`` swaps the current tag (unknown becomes 1);
    an explicit ``null`` clears it.
    """

    speaker_tag: Literal[1, 2] | None = None


class MessageSpeakerResponse(BaseModel):
    id: str
    speaker_tag: int | None = None


class SpeakerInfo(BaseModel):
    speaker_tag: int
    name: str | None = None
    samples: list[str] = []


class SpeakersResponse(BaseModel):
    """Speaker names plus sample utterances, used to map tags to people."""

    talk_id: str
    speakers: list[SpeakerInfo]
