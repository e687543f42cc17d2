"""Quality scoring and ranking for search results."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from seedtopics import config
from seedtopics.models import SearchResult
from seedtopics.policy import DEFAULT_POLICY, DomainPolicy
from seedtopics.text import city_label, mentions
from seedtopics.urls import extract_hostname

logger = logging.getLogger(__name__)

_SPAM_TITLE_RE = re.compile(r"^[A-Z\s!?]{10,}$")

# ── Snippet thresholds ─────────────────────────────────────────────────────
_LONG_SNIPPET = 40


@dataclass(frozen=True)
class _ScoreContext:
    title: str
    snippet: str
    hostname: str
    city: str
    policy: DomainPolicy


def _long_snippet(ctx: _ScoreContext) -> bool:
    return len(ctx.snippet) >= _LONG_SNIPPET


def _short_snippet(ctx: _ScoreContext) -> bool:
    return 0 < len(ctx.snippet) < _LONG_SNIPPET


def _high_trust(ctx: _ScoreContext) -> bool:
    return ctx.policy.is_high_trust(ctx.hostname)


def _title_mentions_place(ctx: _ScoreContext) -> bool:
    return mentions(ctx.title, ctx.city, config.COUNTRY_NAME)


def _snippet_mentions_place(ctx: _ScoreContext) -> bool:
    return mentions(ctx.snippet, ctx.city, config.COUNTRY_NAME)


def _own_domain(ctx: _ScoreContext) -> bool:
    return ctx.policy.is_own_domain(ctx.hostname)


def _spammy_title(ctx: _ScoreContext) -> bool:
    return len(ctx.title) < 10 or bool(_SPAM_TITLE_RE.match(ctx.title))


# Evaluated in order and summed. The two snippet-length rules are exclusive.
SCORE_RULES: list[tuple[str, Callable[[_ScoreContext], bool], int]] = [
    ("long_snippet", _long_snippet, 3),
    ("short_snippet", _short_snippet, 1),
    ("high_trust", _high_trust, 2),
    ("title_mentions_place", _title_mentions_place, 1),
    ("snippet_mentions_place", _snippet_mentions_place, 1),
    ("own_domain", _own_domain, -2),
    ("spammy_title", _spammy_title, -1),
]


def score(
    result: SearchResult,
    city_focus: str,
    policy: DomainPolicy = DEFAULT_POLICY,
) -> int:
    """Compute the quality score for a single search result."""
    ctx = _ScoreContext(
        title=result.title,
        snippet=(result.snippet or "").strip(),
        hostname=extract_hostname(result.url),
        city=city_label(city_focus),
        policy=policy,
    )
    return sum(delta for _name, predicate, delta in SCORE_RULES if predicate(ctx))


def rank(results: list[SearchResult]) -> list[SearchResult]:
    """Sort descending by score; ties keep discovery order."""
    ranked = sorted(results, key=lambda r: r.score, reverse=True)
    logger.debug(
        "Ranked %d results; top score=%d", len(ranked), ranked[0].score if ranked else 0
    )
    return ranked
