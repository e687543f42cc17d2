"""Deterministic fallback queries for when the primary search pass starves."""

from __future__ import annotations

import logging
import re

from seedtopics import config
from seedtopics.models import AudienceFocus
from seedtopics.text import city_label

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"\b\d{4}\b")
_PUNCT_RE = re.compile(r"[^\w\s]")

_MAX_TITLE_WORDS = 4

# ── Templates ({city} = resolved city focus, {country} = country name) ─────
_TEACHER_QUERIES: tuple[str, ...] = (
    "{city} work permit requirements teacher",
    "{country} visa types for working as teacher",
    "{country} immigration rules entry requirements",
)

_TRAVELLER_QUERIES: tuple[str, ...] = (
    "{city} entry requirements visitors",
    "{country} e-visa vs ordinary visa",
    "{country} travel requirements tourists",
)

_AUTHORITY_QUERIES: tuple[str, ...] = (
    "site:gov.kh entry requirements {country}",
    "{country} embassy visa requirements",
    "UK FCDO {country} entry requirements",
)


def title_keywords(seed_title: str) -> list[str]:
    """Significant words of *seed_title*: no years, no punctuation, longer than 3 chars."""
    stripped = _PUNCT_RE.sub(" ", _YEAR_RE.sub("", seed_title))
    return [w for w in stripped.split() if len(w) > 3][:_MAX_TITLE_WORDS]


def build_fallback_queries(
    seed_title: str,
    city_focus: str,
    audience_focus: AudienceFocus,
    original_queries: list[str],
) -> list[str]:
    """Build broader backup queries from the seed title. No LLM involved.

    Queries that case-insensitively match one already used are dropped.
    """
    city = city_label(city_focus)
    country = config.COUNTRY_NAME
    words = title_keywords(seed_title)

    candidates: list[str] = []

    # a) Broader topic queries, no year constraint
    if len(words) >= 2:
        candidates.append(f"{city} {' '.join(words)}")
        candidates.append(f"{country} {' '.join(words[:3])}")

    # b) Audience-specific boilerplate
    if audience_focus in ("teachers", "both"):
        candidates.extend(t.format(city=city, country=country) for t in _TEACHER_QUERIES)
    if audience_focus in ("travellers", "both"):
        candidates.extend(t.format(city=city, country=country) for t in _TRAVELLER_QUERIES)

    # c) Authoritative sources
    candidates.extend(t.format(city=city, country=country) for t in _AUTHORITY_QUERIES)

    used = {q.lower() for q in original_queries}
    fallback: list[str] = []
    for query in candidates:
        if query.lower() in used:
            continue
        used.add(query.lower())
        fallback.append(query)

    logger.debug("Built %d fallback queries for %r", len(fallback), seed_title)
    return fallback
