"""Unit tests for the search-result scorer."""

from seedtopics.models import SearchResult
from seedtopics.rank import rank, score

WHOLE = "Cambodia wide"


def _make(
    url: str = "https://randomsite.com/page",
    title: str = "Some random page title",
    snippet: str | None = None,
    rid: str = "r1",
    points: int = 0,
) -> SearchResult:
    return SearchResult(
        id=rid, query="q", title=title, snippet=snippet, url=url, score=points
    )


class TestScore:
    def test_trusted_grounded_result_beats_bare_one(self) -> None:
        trusted = _make(
            url="https://www.gov.kh/visa",
            title="Cambodia e-visa rules updated for travellers",
            snippet="New Cambodia entry requirements take effect for all visitors.",
        )
        bare = _make()
        # 3 (long snippet) + 2 (trust) + 1 (title) + 1 (snippet)
        assert score(trusted, WHOLE) == 7
        assert score(bare, WHOLE) == 0
        assert score(trusted, WHOLE) > score(bare, WHOLE)

    def test_short_snippet_scores_one(self) -> None:
        assert score(_make(snippet="Brief note."), WHOLE) == 1

    def test_whitespace_snippet_scores_nothing(self) -> None:
        assert score(_make(snippet="    "), WHOLE) == 0

    def test_subdomain_of_high_trust(self) -> None:
        assert score(_make(url="https://tourism.gov.kh/x"), WHOLE) == 2

    def test_city_focus_boost(self) -> None:
        city = _make(title="Siem Reap temple pass prices rise")
        other = _make(title="Temple pass prices rise again")
        assert score(city, "Siem Reap") == 1
        assert score(other, "Siem Reap") == 0

    def test_country_counts_for_city_focus(self) -> None:
        assert score(_make(title="Cambodia temple pass prices"), "Siem Reap") == 1

    def test_own_domain_penalty(self) -> None:
        assert score(_make(url="https://globescraper.com/guide"), WHOLE) == -2

    def test_spammy_titles(self) -> None:
        assert score(_make(title="VISA NEWS!!!"), WHOLE) == -1
        assert score(_make(title="Visa"), WHOLE) == -1

    def test_deterministic(self) -> None:
        result = _make(
            url="https://reuters.com/world",
            title="Cambodia tourism numbers climb",
            snippet="Arrivals in Cambodia rose sharply this quarter, officials said.",
        )
        assert score(result, WHOLE) == score(result, WHOLE)


class TestRank:
    def test_descending(self) -> None:
        items = [_make(rid="a", points=1), _make(rid="b", points=5), _make(rid="c", points=3)]
        assert [r.id for r in rank(items)] == ["b", "c", "a"]

    def test_ties_keep_discovery_order(self) -> None:
        items = [_make(rid="a", points=2), _make(rid="b", points=2), _make(rid="c", points=4)]
        assert [r.id for r in rank(items)] == ["c", "a", "b"]

    def test_empty(self) -> None:
        assert rank([]) == []
