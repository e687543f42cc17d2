"""Deduplication logic: flag generated topics whose titles already exist."""

from __future__ import annotations

import logging

from seedtopics.models import NewsTopic, SimilarityCheckResult
from seedtopics.similarity import check_title_similarity

logger = logging.getLogger(__name__)


def dedupe(
    topics: list[NewsTopic], existing_titles: list[str]
) -> tuple[list[NewsTopic], list[tuple[NewsTopic, SimilarityCheckResult]]]:
    """Split *topics* into fresh ones and duplicates of existing titles.

    Titles accepted earlier in the same batch count as existing for the
    ones after them.
    """
    known = list(existing_titles)
    fresh: list[NewsTopic] = []
    duplicates: list[tuple[NewsTopic, SimilarityCheckResult]] = []

    for topic in topics:
        check = check_title_similarity(topic.title, known)
        if check.is_duplicate:
            duplicates.append((topic, check))
            continue
        fresh.append(topic)
        known.append(topic.title)

    logger.info(
        "Dedupe: %d topics → %d fresh (flagged %d duplicates)",
        len(topics),
        len(fresh),
        len(duplicates),
    )
    return fresh, duplicates
