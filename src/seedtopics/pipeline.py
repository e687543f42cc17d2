"""Pipeline orchestration: queries → search → fallback → grounded topics."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from seedtopics import config
from seedtopics.fallback import build_fallback_queries
from seedtopics.llm import LLMClient, TextGenerator
from seedtopics.models import (
    AudienceFocus,
    NewsTopic,
    PipelineLog,
    PipelineResult,
    QueryStats,
    RejectionCounts,
    SearchResult,
)
from seedtopics.policy import DomainPolicy, load_policy
from seedtopics.queries import generate_search_queries
from seedtopics.search import SearchExecutor, merge_results
from seedtopics.search_client import SearchClient, UnconfiguredSearch, WebSearch
from seedtopics.topics import generate_topic_variations

logger = logging.getLogger(__name__)

ERR_NO_QUERIES = "Failed to generate search queries. Try again."
ERR_NO_SOURCES = "No usable sources returned from search. Try again, or pick a less niche title."


def default_llm() -> LLMClient:
    return LLMClient(
        provider=config.LLM_PROVIDER,
        api_key=config.LLM_API_KEY,
        model=config.LLM_MODEL,
        base_url=config.LLM_BASE_URL,
        timeout=config.LLM_TIMEOUT,
    )


def default_search_client() -> WebSearch:
    """Search client built from config; a no-result stand-in when credentials are missing."""
    try:
        return SearchClient(
            api_key=config.GOOGLE_CSE_API_KEY,
            cse_id=config.GOOGLE_CSE_ID,
            timeout=config.SEARCH_TIMEOUT,
        )
    except ValueError as exc:
        logger.warning("Web search not configured, every query counts as zero results: %s", exc)
        return UnconfiguredSearch()


def run_search_topics_pipeline(
    seed_title: str,
    city_focus: str,
    audience_focus: AudienceFocus,
    *,
    llm: TextGenerator | None = None,
    search_client: WebSearch | None = None,
    policy: DomainPolicy | None = None,
    current_year: int | None = None,
) -> PipelineResult:
    """Run Stage A, the search pass(es) and Stage B for one seed title.

    Ordinary upstream failures degrade inside the stages. The two terminal
    conditions (no queries, no usable sources) come back as
    ``PipelineResult.error`` together with the populated log.
    """
    llm = llm if llm is not None else default_llm()
    search_client = search_client if search_client is not None else default_search_client()
    policy = policy if policy is not None else load_policy()
    year = current_year if current_year is not None else datetime.now(UTC).year

    logger.info("=== search topics start [seed=%r city=%s audience=%s] ===",
                seed_title, city_focus, audience_focus)

    def finish(
        *,
        queries: list[str],
        stats: list[QueryStats],
        results: list[SearchResult],
        rejections: RejectionCounts,
        fallback_used: bool,
        tokens: int,
        topics: list[NewsTopic] | None = None,
        error: str | None = None,
    ) -> PipelineResult:
        topics = topics or []
        log = PipelineLog(
            seed_title=seed_title,
            city_focus=city_focus,
            audience_focus=audience_focus,
            query_list=list(queries),
            query_stats=list(stats),
            usable_result_count=len(results),
            rejections=rejections,
            fallback_used=fallback_used,
            total_token_usage=tokens,
            topics_count=len(topics),
        )
        if error:
            logger.error("Search topics failed: %s", error)
        return PipelineResult(topics=topics, log=log, error=error)

    # ── 1. Stage A: search queries ────────────────────────────────────
    stage_a = generate_search_queries(llm, seed_title, city_focus, audience_focus, year)
    tokens = stage_a.token_usage
    queries = stage_a.queries
    logger.info("Stage A produced %d queries: %s", len(queries), queries)

    if not queries:
        return finish(
            queries=[],
            stats=[],
            results=[],
            rejections=RejectionCounts(),
            fallback_used=False,
            tokens=tokens,
            error=ERR_NO_QUERIES,
        )

    # ── 2. Primary search pass ────────────────────────────────────────
    executor = SearchExecutor(search_client, city_focus, policy=policy)
    primary = executor.execute(queries)
    results = primary.results
    stats = list(primary.query_stats)
    rejections = primary.rejections
    logger.info(
        "Primary pass: %d results. Rejections: %s",
        len(results),
        rejections.model_dump(by_alias=True),
    )

    # ── 3. Fallback expansion ─────────────────────────────────────────
    fallback_used = False
    if len(results) < config.MIN_SOURCES:
        fallback_used = True
        fallback_queries = build_fallback_queries(
            seed_title, city_focus, audience_focus, queries
        )[: config.FALLBACK_QUERY_LIMIT]
        logger.info(
            "Only %d results (need %d); running %d fallback queries",
            len(results),
            config.MIN_SOURCES,
            len(fallback_queries),
        )
        if fallback_queries:
            extra = executor.execute(fallback_queries)
            results = merge_results(results, extra.results, config.TARGET_SOURCES)
            stats.extend(extra.query_stats)
            rejections = rejections.merged(extra.rejections)
            logger.info("After fallback: %d results", len(results))

    if not results:
        return finish(
            queries=queries,
            stats=stats,
            results=results,
            rejections=rejections,
            fallback_used=fallback_used,
            tokens=tokens,
            error=ERR_NO_SOURCES,
        )

    if len(results) < config.MIN_SOURCES:
        # Below the minimum is not fatal.
        logger.warning(
            "Proceeding with %d results (below MIN_SOURCES=%d)",
            len(results),
            config.MIN_SOURCES,
        )

    # ── 4. Stage B: grounded topic variations ─────────────────────────
    stage_b = generate_topic_variations(
        llm, seed_title, city_focus, audience_focus, year, results
    )
    tokens += stage_b.token_usage
    logger.info("=== search topics done: %d topics, %d tokens ===",
                len(stage_b.topics), tokens)

    return finish(
        queries=queries,
        stats=stats,
        results=results,
        rejections=rejections,
        fallback_used=fallback_used,
        tokens=tokens,
        topics=stage_b.topics,
    )
