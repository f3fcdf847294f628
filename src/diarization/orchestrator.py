"""End-to-end speaker attribution for one finished talk.

fetch audio -> batch recognition -> extract words -> load messages ->
align -> persist each tag as soon as it is decided.
"""

from __future__ import annotations

import logging

from supabase import Client

from src.diarization.alignment import align_utterance
from src.diarization.errors import DiarizationError, EmptyResultError, PersistenceError
from src.diarization.extractor import extract_batch_words
from src.diarization.models import AlignmentState, BatchWord, DiarizationResult
from src.diarization.recognizer import AssemblyAIRecognizer, BatchRecognizer
from src.diarization.storage import (
    fetch_talk,
    get_supabase_client,
    list_utterances,
    resolve_audio_url,
    resolve_language,
    set_diarization_status,
    update_speaker_tag,
)
from src.pipeline_config import DEFAULT_ALIGNMENT_CONFIG, AlignmentConfig, DiarizationStatus

logger = logging.getLogger(__name__)


def run_diarization(
    talk_id: str,
    client: Client | None = None,
    recognizer: BatchRecognizer | None = None,
    config: AlignmentConfig = DEFAULT_ALIGNMENT_CONFIG,
) -> DiarizationResult:
    """Assign speakers to every stored message of *talk_id*.

    Each successful assignment is written immediately, so an interrupted
    run leaves already-tagged messages in place and can simply be re-run;
    later runs overwrite tags with freshly computed ones.

    Args:
        talk_id: Conversation to process.
        client: Supabase client (created from settings when omitted).
        recognizer: Batch speech engine (AssemblyAI when omitted).
        config: Alignment tuning constants.

    Returns:
        Counts of updated, unmatched, and failed messages.

    Raises:
        TalkNotFoundError: The talk does not exist.
        AudioNotFoundError: The talk has no recording.
        RecognitionSubmissionError: The engine rejected or could not take the job.
        RecognitionTimeoutError: The job exceeded the maximum wait.
    """
    client = client or get_supabase_client()
    recognizer = recognizer or AssemblyAIRecognizer.from_settings()
    logger.info("Starting diarization for talk %s", talk_id)

    talk = fetch_talk(client, talk_id)
    audio_url = resolve_audio_url(client, talk)
    language = resolve_language(client, talk)

    words: list[BatchWord]
    try:
        recognition = recognizer.recognize(audio_url, language)
        words = extract_batch_words(recognition, max_speakers=config.max_speakers)
    except EmptyResultError as exc:
        logger.warning("Talk %s: recognition returned no usable result (%s)", talk_id, exc)
        words = []
    logger.info("Talk %s: extracted %d speaker-labelled words", talk_id, len(words))

    utterances = list_utterances(client, talk_id)
    result = DiarizationResult(
        talk_id=talk_id, total_messages=len(utterances), word_count=len(words)
    )
    if not words:
        logger.warning("Talk %s: no speaker-labelled words, nothing to attribute", talk_id)
        result.unmatched_count = len(utterances)
        return result

    state = AlignmentState()
    for utterance in utterances:
        attribution, state = align_utterance(utterance.text, words, state, config)
        if not attribution.matched:
            result.unmatched_count += 1
            logger.debug("Message %s left unattributed (%s)", utterance.id, attribution.method.value)
            continue

        try:
            update_speaker_tag(client, utterance.id, attribution.speaker_tag)
        except PersistenceError:
            logger.exception("Talk %s: could not store speaker for message %s", talk_id, utterance.id)
            result.failed_count += 1
            continue

        result.updated_count += 1
        logger.debug(
            "Message %s -> speaker %d via %s",
            utterance.id,
            attribution.speaker_tag,
            attribution.method.value,
        )

    logger.info(
        "Talk %s: updated %d/%d messages (%d unmatched, %d failed)",
        talk_id,
        result.updated_count,
        result.total_messages,
        result.unmatched_count,
        result.failed_count,
    )
    return result


def run_diarization_in_background(talk_id: str) -> None:
    """Fire-and-forget entry point for the conversation-end hook.

    Failures are logged and recorded on the talk's ``diarization_status``;
    nothing is raised to the scheduler.
    """
    try:
        client = get_supabase_client()
    except Exception:
        logger.exception("Could not connect to Supabase to diarize talk %s", talk_id)
        return

    _record_status(client, talk_id, DiarizationStatus.PROCESSING)
    try:
        run_diarization(talk_id, client=client)
    except DiarizationError:
        logger.exception("Diarization failed for talk %s", talk_id)
        _record_status(client, talk_id, DiarizationStatus.FAILED)
        return
    except Exception:
        logger.exception("Unexpected error while diarizing talk %s", talk_id)
        _record_status(client, talk_id, DiarizationStatus.FAILED)
        return
    _record_status(client, talk_id, DiarizationStatus.COMPLETED)


def _record_status(client: Client, talk_id: str, status: DiarizationStatus) -> None:
    # Status writes are best-effort: a transport failure must not stop the run.
    try:
        set_diarization_status(client, talk_id, status)
    except Exception:
        logger.exception("Could not record diarization_status=%s for talk %s", status.value, talk_id)
