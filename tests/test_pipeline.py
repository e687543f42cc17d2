"""End-to-end pipeline tests with a fake generator and a fake search provider."""

import pytest
from fakes import FakeGenerator, FakeSearch, item, topic_dict
from pydantic import ValidationError

from seedtopics import config
from seedtopics.models import PipelineLog, RawSearchItem
from seedtopics.pipeline import (
    ERR_NO_QUERIES,
    ERR_NO_SOURCES,
    default_search_client,
    run_search_topics_pipeline,
)
from seedtopics.policy import DEFAULT_POLICY
from seedtopics.search_client import UnconfiguredSearch

SEED = "Cambodia Visa Changes 2025"
WHOLE = "Cambodia wide"

QUERIES = [
    "cambodia visa changes 2025",
    "cambodia e-visa fees",
    "phnom penh airport arrival rules",
    "cambodia business visa extension",
    "siem reap tourist entry rules",
]


def _slug(query: str) -> str:
    return query.replace(" ", "-").replace(":", "")


def _items_for(query: str, n: int) -> list[RawSearchItem]:
    return [item(f"https://reuters.com/{_slug(query)}-{i}") for i in range(n)]


def _topics_reply(urls: list[str], n: int = 5) -> dict:
    topics = [topic_dict(i, [urls[i % len(urls)]]) for i in range(n)]
    topics[0] = topic_dict(0, [urls[0], urls[1]], title=SEED, from_seed=True)
    return {"topics": topics}


def _run(llm: FakeGenerator, search: FakeSearch, seed: str = SEED):
    return run_search_topics_pipeline(
        seed,
        WHOLE,
        "both",
        llm=llm,
        search_client=search,
        policy=DEFAULT_POLICY,
        current_year=2025,
    )


class TestPipeline:
    def test_healthy_run_without_fallback(self) -> None:
        search = FakeSearch(default=lambda q: _items_for(q, 3))
        urls = [f"https://reuters.com/{_slug(QUERIES[0])}-{i}" for i in range(3)]
        llm = FakeGenerator([{"queries": QUERIES}, _topics_reply(urls)])

        result = _run(llm, search)

        assert result.ok
        assert search.calls == QUERIES
        assert 4 <= len(result.topics) <= 8
        first = result.topics[0]
        assert first.from_seed_title
        assert first.title == SEED
        assert first.source_count == 2
        for topic in result.topics:
            assert "2024" not in topic.title
            assert "cambodia" in topic.title.lower()

        log = result.log
        assert log.fallback_used is False
        assert log.usable_result_count == 15
        assert log.query_list == QUERIES
        assert [s.kept_count for s in log.query_stats] == [3, 3, 3, 3, 3]
        assert log.topics_count == len(result.topics)
        assert log.total_token_usage == 200
        assert log.rejections.total == 0

    def test_every_cited_url_was_retrieved(self) -> None:
        search = FakeSearch(default=lambda q: _items_for(q, 3))
        urls = [f"https://reuters.com/{_slug(QUERIES[1])}-{i}" for i in range(3)]
        reply = _topics_reply(urls)
        reply["topics"][2]["sourceUrls"] = [urls[2], "https://invented.example.com/story"]
        llm = FakeGenerator([{"queries": QUERIES}, reply])

        result = _run(llm, search)

        retrieved = {f"https://reuters.com/{_slug(q)}-{i}" for q in QUERIES for i in range(3)}
        for topic in result.topics:
            assert set(topic.source_urls) <= retrieved
        assert result.topics[2].source_urls == [urls[2]]

    def test_no_sources_anywhere(self) -> None:
        search = FakeSearch()
        llm = FakeGenerator([{"queries": QUERIES}])

        result = _run(llm, search)

        assert result.error == ERR_NO_SOURCES
        assert result.topics == []
        assert result.log.usable_result_count == 0
        assert result.log.fallback_used is True
        # Primary queries plus at most six fallback queries
        assert 5 < len(search.calls) <= 11
        assert len(result.log.query_stats) == len(search.calls)
        assert len(llm.prompts) == 1

    def test_fallback_tops_up_thin_results(self) -> None:
        responses = {q: [] for q in QUERIES}
        responses[QUERIES[0]] = _items_for("primary", 3)
        search = FakeSearch(responses, default=lambda q: _items_for(q, 2))
        primary_urls = [f"https://reuters.com/primary-{i}" for i in range(3)]
        llm = FakeGenerator([{"queries": QUERIES}, _topics_reply(primary_urls)])

        result = _run(llm, search)

        assert result.ok
        log = result.log
        assert log.fallback_used is True
        assert log.usable_result_count > 3
        assert log.usable_result_count <= 15
        fallback_calls = search.calls[len(QUERIES):]
        assert 0 < len(fallback_calls) <= 6
        assert not {q.lower() for q in fallback_calls} & {q.lower() for q in QUERIES}
        assert len(log.query_stats) == len(QUERIES) + len(fallback_calls)
        assert len(llm.prompts) == 2
        assert result.topics

    def test_thin_results_still_generate_topics(self) -> None:
        responses = {q: [] for q in QUERIES}
        responses[QUERIES[0]] = _items_for("primary", 2)
        search = FakeSearch(responses)
        primary_urls = [f"https://reuters.com/primary-{i}" for i in range(2)]
        llm = FakeGenerator([{"queries": QUERIES}, _topics_reply(primary_urls)])

        result = _run(llm, search)

        assert result.ok
        assert result.log.fallback_used is True
        assert result.log.usable_result_count == 2
        assert len(result.topics) == 5

    def test_no_queries(self) -> None:
        search = FakeSearch(default=lambda q: _items_for(q, 3))
        llm = FakeGenerator([])

        result = _run(llm, search)

        assert result.error == ERR_NO_QUERIES
        assert search.calls == []
        assert result.log.query_list == []
        assert result.log.total_token_usage == 0

    def test_stage_b_failure_is_not_an_error(self) -> None:
        search = FakeSearch(default=lambda q: _items_for(q, 3))
        llm = FakeGenerator([{"queries": QUERIES}])

        result = _run(llm, search)

        assert result.ok
        assert result.topics == []
        assert result.log.topics_count == 0

    def test_log_uses_wire_names(self) -> None:
        search = FakeSearch()
        llm = FakeGenerator([{"queries": QUERIES}])

        dumped = _run(llm, search).model_dump(mode="json", by_alias=True)

        assert dumped["log"]["fallbackUsed"] is True
        assert dumped["log"]["usableResultCount"] == 0
        assert set(dumped["log"]["rejections"]) == {
            "missingUrl",
            "missingTitle",
            "blockedDomain",
            "duplicateUrl",
            "ownDomain",
        }


class TestUnconfiguredSearch:
    def test_missing_credentials_end_as_no_sources(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "GOOGLE_CSE_API_KEY", "")
        monkeypatch.setattr(config, "GOOGLE_CSE_ID", "")
        llm = FakeGenerator([{"queries": QUERIES}])

        result = run_search_topics_pipeline(
            SEED, WHOLE, "both", llm=llm, policy=DEFAULT_POLICY, current_year=2025
        )

        assert result.error == ERR_NO_SOURCES
        assert result.log.query_list == QUERIES
        assert result.log.usable_result_count == 0
        assert result.log.fallback_used is True
        assert len(result.log.query_stats) > len(QUERIES)
        assert all(s.raw_count == 0 for s in result.log.query_stats)
        assert len(llm.prompts) == 1

    def test_default_client_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "GOOGLE_CSE_ID", "")
        assert isinstance(default_search_client(), UnconfiguredSearch)


class TestPipelineLog:
    def test_rejects_unknown_audience(self) -> None:
        with pytest.raises(ValidationError):
            PipelineLog(seed_title="s", city_focus=WHOLE, audience_focus="everyone")
