"""Text-based alignment of stored utterances against batch words.

The two transcripts come from independent recognition passes and share no
clock, so speakers are transferred by matching normalised text:

1. Containment: find the span of batch words whose concatenation contains
   the utterance.  The search starts a few words behind the cursor so that
   small ordering differences between the passes are tolerated, and a
   successful match advances the cursor past the span.
2. Fallback: if no span contains the utterance, score every window of up
   to ``fallback_window_words`` words with a positional character
   similarity and accept the best one only above ``fallback_threshold``.
   The fallback never moves the cursor.

Every function here is pure: the cursor travels in an explicit
:class:`AlignmentState` so repeated runs over the same inputs give the
same assignments.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from src.diarization.models import AlignmentState, Attribution, BatchWord
from src.diarization.normalizer import normalize
from src.pipeline_config import DEFAULT_ALIGNMENT_CONFIG, AlignmentConfig, MatchMethod

logger = logging.getLogger(__name__)


def majority_label(labels: Iterable[int]) -> int | None:
    """Return the most frequent label.

    Ties go to the label that appears first in *labels*.
    """
    counts: dict[int, int] = {}
    for label in labels:
        counts[label] = counts.get(label, 0) + 1

    best_label: int | None = None
    best_count = 0
    # dicts keep insertion order, i.e. first appearance
    for label, count in counts.items():
        if count > best_count:
            best_label, best_count = label, count
    return best_label


def positional_similarity(a: str, b: str) -> float:
    """Share of character positions at which *a* and *b* agree.

    Purely positional: ``"abc"`` vs ``"xabc"`` scores 0.  The denominator
    is the longer of the two strings.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    matching = sum(1 for x, y in zip(a, b) if x == y)
    return matching / longest


def find_containment_span(
    needle: str,
    words: Sequence[BatchWord],
    cursor: int,
    config: AlignmentConfig = DEFAULT_ALIGNMENT_CONFIG,
) -> tuple[int, int] | None:
    """Locate the word span whose concatenation contains *needle*.

    Returns ``(start, length)`` or ``None``.  An exact concatenation match
    is returned immediately.  Otherwise the candidate consuming the most
    words wins, and on a tie a start at or after *cursor* beats one inside
    the look-back window.
    """
    search_from = max(0, cursor - config.lookback_words)
    cap = len(needle) + config.containment_slack_chars

    best: tuple[int, int] | None = None
    for start in range(search_from, len(words)):
        concat = ""
        consumed = 0
        contained = False
        for index in range(start, len(words)):
            concat += words[index].normalized
            consumed += 1
            if concat == needle:
                return start, consumed
            if needle in concat:
                contained = True
                break
            if len(concat) >= cap:
                break

        if not contained:
            continue
        if best is None or consumed > best[1]:
            best = (start, consumed)
        elif consumed == best[1] and best[0] < cursor <= start:
            best = (start, consumed)

    return best


def find_fallback_match(
    needle: str,
    words: Sequence[BatchWord],
    config: AlignmentConfig = DEFAULT_ALIGNMENT_CONFIG,
) -> tuple[float, int | None]:
    """Best positional similarity over all rolling windows.

    Returns ``(similarity, speaker_label)`` where the label is the majority
    speaker of the window that produced the best score.  An empty word list
    is skipped outright and yields ``(0.0, None)``.
    """
    if not words:
        return 0.0, None

    best_similarity = 0.0
    best_label: int | None = None
    for start in range(len(words)):
        window = ""
        stop = min(start + config.fallback_window_words, len(words))
        for index in range(start, stop):
            window += words[index].normalized
            similarity = positional_similarity(needle, window)
            if similarity > best_similarity:
                best_similarity = similarity
                best_label = majority_label(w.speaker_label for w in words[start : index + 1])

    return best_similarity, best_label


def align_utterance(
    text: str,
    words: Sequence[BatchWord],
    state: AlignmentState,
    config: AlignmentConfig = DEFAULT_ALIGNMENT_CONFIG,
) -> tuple[Attribution, AlignmentState]:
    """Decide the speaker for one utterance.

    Args:
        text: Raw utterance text.
        words: Batch words in recognition order.
        state: Cursor left by the previous utterance.
        config: Tuning constants.

    Returns:
        The attribution and the state to hand to the next utterance.
    """
    needle = normalize(text)
    if not needle:
        return Attribution(method=MatchMethod.SKIPPED), state

    span = find_containment_span(needle, words, state.cursor, config)
    if span is not None:
        start, length = span
        label = majority_label(w.speaker_label for w in words[start : start + length])
        if label is not None:
            attribution = Attribution(
                method=MatchMethod.CONTAINMENT,
                speaker_tag=label + 1,
                match_start=start,
                match_length=length,
            )
            return attribution, AlignmentState(cursor=start + length)

    similarity, label = find_fallback_match(needle, words, config)
    if label is not None and similarity > config.fallback_threshold:
        return (
            Attribution(method=MatchMethod.FALLBACK, speaker_tag=label + 1, similarity=similarity),
            state,
        )

    return Attribution(method=MatchMethod.NONE, similarity=similarity), state


def align_utterances(
    texts: Iterable[str],
    words: Sequence[BatchWord],
    config: AlignmentConfig = DEFAULT_ALIGNMENT_CONFIG,
) -> list[Attribution]:
    """Align a chronologically ordered batch of utterance texts."""
    state = AlignmentState()
    attributions: list[Attribution] = []
    for text in texts:
        attribution, state = align_utterance(text, words, state, config)
        logger.debug(
            "Aligned %r via %s -> speaker %s (cursor %d)",
            text[:30],
            attribution.method.value,
            attribution.speaker_tag,
            state.cursor,
        )
        attributions.append(attribution)
    return attributions
