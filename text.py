from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

STOP_WORDS = ("the", "a", "an", "and", "or", "at", "in", "on", "for", "with", "by")

_PUNCTUATION = re.compile(r"[^\w\s]")
_STOP_WORDS = re.compile(r"\b(?:" + "|".join(STOP_WORDS) + r")\b")
_WHITESPACE = re.compile(r"\s+")

LEVENSHTEIN_WEIGHT = 0.7
JACCARD_WEIGHT = 0.3


def normalize(text: str | None) -> str:
    """Lowercase, drop punctuation and stop words, collapse whitespace."""
    if not text:
        return ""
    text = _PUNCTUATION.sub("", text.lower())
    text = _STOP_WORDS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def levenshtein_similarity(a: str, b: str) -> float:
    """Edit distance scaled to [0, 1] by the longer string."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1 - Levenshtein.distance(a, b) / max(len(a), len(b))


def jaccard_similarity(a: str, b: str) -> float:
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def composite_string_similarity(a: str, b: str) -> float:
    return (
        LEVENSHTEIN_WEIGHT * levenshtein_similarity(a, b)
        + JACCARD_WEIGHT * jaccard_similarity(a, b)
    )
