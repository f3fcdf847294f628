"""Text canonicalisation shared by both transcripts."""

from __future__ import annotations

import re

# Whitespace plus ASCII and full-width sentence punctuation.
_STRIP_RE = re.compile(r"[\s。、．，！？!?・]+")


def normalize(text: str | None) -> str:
    """Strip whitespace and sentence punctuation, then lowercase.

    Applied identically to stored utterances and batch words so that
    substring comparisons between the two are symmetric.
    """
    if not text:
        return ""
    return _STRIP_RE.sub("", text).lower()
