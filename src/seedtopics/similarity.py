"""Duplicate-title guard: compare a candidate title against existing titles."""

from __future__ import annotations

import logging
import re

from seedtopics.models import SimilarityCheckResult

logger = logging.getLogger(__name__)

JACCARD_THRESHOLD = 0.85
BIGRAM_THRESHOLD = 0.8
_CLOSEST_LIMIT = 10

_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def normalise(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    return _SPACE_RE.sub(" ", _PUNCT_RE.sub("", text.lower())).strip()


def _bigrams(norm: str) -> set[str]:
    words = norm.split()
    return {f"{a} {b}" for a, b in zip(words, words[1:])}


def jaccard_words(a: str, b: str) -> float:
    """Jaccard similarity of the two word sets (0-1)."""
    set_a, set_b = set(normalise(a).split()), set(normalise(b).split())
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def bigram_overlap(a: str, b: str) -> float:
    """Shared bigrams over the smaller title's bigram count (0-1)."""
    bg_a, bg_b = _bigrams(normalise(a)), _bigrams(normalise(b))
    if not bg_a or not bg_b:
        return 0.0
    return len(bg_a & bg_b) / min(len(bg_a), len(bg_b))


def check_title_similarity(
    candidate: str, existing_titles: list[str]
) -> SimilarityCheckResult:
    """Check *candidate* against *existing_titles*.

    In order: exact match after normalisation, word-set Jaccard above
    ``JACCARD_THRESHOLD``, bigram overlap above ``BIGRAM_THRESHOLD``.
    When nothing matches, the ten closest titles by Jaccard are returned.
    """
    norm_candidate = normalise(candidate)

    for title in existing_titles:
        if normalise(title) == norm_candidate:
            return SimilarityCheckResult(
                is_duplicate=True,
                reason=f'Exact match: "{title}"',
                closest_titles=[title],
            )

    scored = [
        (title, jaccard_words(candidate, title), bigram_overlap(candidate, title))
        for title in existing_titles
    ]
    by_jaccard = sorted(scored, key=lambda s: s[1], reverse=True)

    for title, jaccard, _bigram in scored:
        if jaccard > JACCARD_THRESHOLD:
            return SimilarityCheckResult(
                is_duplicate=True,
                reason=f'Too similar (Jaccard {jaccard * 100:.0f}%): "{title}"',
                closest_titles=[s[0] for s in by_jaccard[:_CLOSEST_LIMIT]],
            )

    for title, _jaccard, bigram in scored:
        if bigram > BIGRAM_THRESHOLD:
            by_bigram = sorted(scored, key=lambda s: s[2], reverse=True)
            return SimilarityCheckResult(
                is_duplicate=True,
                reason=f'Too similar (bigram {bigram * 100:.0f}%): "{title}"',
                closest_titles=[s[0] for s in by_bigram[:_CLOSEST_LIMIT]],
            )

    logger.debug("Title %r is unique against %d titles", candidate, len(existing_titles))
    return SimilarityCheckResult(
        is_duplicate=False,
        closest_titles=[s[0] for s in by_jaccard[:_CLOSEST_LIMIT]],
    )
