"""Search step: run provider queries, reject, dedupe, score and rank results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from seedtopics import config
from seedtopics.models import QueryStats, RawSearchItem, RejectionCounts, SearchResult
from seedtopics.policy import DEFAULT_POLICY, DomainPolicy
from seedtopics.rank import rank, score
from seedtopics.search_client import WebSearch
from seedtopics.urls import canonicalize_url, extract_hostname

logger = logging.getLogger(__name__)

_TOP_DOMAINS = 5


@dataclass
class SearchBatch:
    results: list[SearchResult] = field(default_factory=list)
    query_stats: list[QueryStats] = field(default_factory=list)
    rejections: RejectionCounts = field(default_factory=RejectionCounts)


class SearchExecutor:
    """Runs search queries for one pipeline run.

    The canonical-URL set and the result id counter live on the executor, so
    a fallback pass through the same executor can never re-admit a URL from
    the primary pass and never reuses an id.
    """

    def __init__(
        self,
        client: WebSearch,
        city_focus: str,
        *,
        policy: DomainPolicy = DEFAULT_POLICY,
        per_query: int = config.SEARCH_RESULTS_PER_QUERY,
        recency_days: int = config.SEARCH_RECENCY_DAYS,
        target: int = config.TARGET_SOURCES,
    ) -> None:
        self._client = client
        self._city_focus = city_focus
        self._policy = policy
        self._per_query = per_query
        self._recency_days = recency_days
        self._target = target
        self.seen_canonical: set[str] = set()
        self._next_id = 0

    # ── public ──────────────────────────────────────────────────────────

    def execute(self, queries: list[str]) -> SearchBatch:
        """Run every query once and return the top-scored results."""
        batch = SearchBatch()
        pool: list[SearchResult] = []

        for query in queries:
            stats = self._run_query(query, pool, batch.rejections)
            batch.query_stats.append(stats)

        batch.results = rank(pool)[: self._target]
        logger.info(
            "Search: %d queries → %d candidates, kept %d (rejected %d)",
            len(queries),
            len(pool),
            len(batch.results),
            batch.rejections.total,
        )
        return batch

    # ── private ─────────────────────────────────────────────────────────

    def _run_query(
        self, query: str, pool: list[SearchResult], rejections: RejectionCounts
    ) -> QueryStats:
        try:
            items = self._client.search(query, self._per_query, self._recency_days)
        except Exception:
            logger.warning("Search query %r failed; counting zero results", query, exc_info=True)
            return QueryStats(query=query)

        items = list(items)[: self._per_query]
        normalized = 0
        kept = 0
        domains: list[str] = []

        for item in items:
            url = (item.url or "").strip()
            if not url:
                rejections.missing_url += 1
                continue
            title = (item.title or "").strip()
            if not title:
                rejections.missing_title += 1
                continue
            normalized += 1

            result = self._accept(item, url, title, query, rejections)
            if result is None:
                continue
            pool.append(result)
            kept += 1
            hostname = extract_hostname(url)
            if hostname not in domains:
                domains.append(hostname)

        return QueryStats(
            query=query,
            raw_count=len(items),
            normalized_count=normalized,
            kept_count=kept,
            top_domains=domains[:_TOP_DOMAINS],
        )

    def _accept(
        self,
        item: RawSearchItem,
        url: str,
        title: str,
        query: str,
        rejections: RejectionCounts,
    ) -> SearchResult | None:
        """Apply the dedup/blocked/own-domain gates; build and score survivors."""
        canonical = canonicalize_url(url)
        if canonical in self.seen_canonical:
            rejections.duplicate_url += 1
            return None
        if self._policy.is_blocked_domain(url):
            rejections.blocked_domain += 1
            return None
        if self._policy.is_own_domain(extract_hostname(url)):
            rejections.own_domain += 1
            return None

        self.seen_canonical.add(canonical)
        self._next_id += 1

        snippet = (item.snippet or "").strip() or None
        trusted = self._policy.find_trusted_source(url)
        result = SearchResult(
            id=f"r{self._next_id}",
            query=query,
            title=title,
            snippet=snippet,
            url=url,
            published_at=item.published_date or None,
            source_name=(
                trusted.publisher
                if trusted
                else item.display_link or self._policy.publisher_name(url)
            ),
        )
        result.score = score(result, self._city_focus, self._policy)
        return result


def merge_results(
    primary: list[SearchResult],
    extra: list[SearchResult],
    target: int = config.TARGET_SOURCES,
) -> list[SearchResult]:
    """Fold *extra* into *primary* by canonical URL, re-rank and cap at *target*."""
    seen = {canonicalize_url(r.url) for r in primary}
    merged = list(primary)
    for result in extra:
        canonical = canonicalize_url(result.url)
        if canonical in seen:
            continue
        seen.add(canonical)
        merged.append(result)
    return rank(merged)[:target]
