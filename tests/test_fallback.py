"""Unit tests for deterministic fallback queries."""

from seedtopics.fallback import build_fallback_queries, title_keywords


class TestTitleKeywords:
    def test_drops_years_punctuation_and_short_words(self) -> None:
        assert title_keywords("Cambodia Visa Changes 2025: What's New?") == [
            "Cambodia",
            "Visa",
            "Changes",
            "What",
        ]

    def test_caps_at_four(self) -> None:
        assert len(title_keywords("alpha bravo charlie delta echoes foxtrot")) == 4


class TestBuildFallbackQueries:
    def test_travellers_whole_country(self) -> None:
        queries = build_fallback_queries("Cambodia Visa Changes 2025", "Cambodia wide", "travellers", [])

        assert queries[0] == "Cambodia Cambodia Visa Changes"
        assert "Cambodia entry requirements visitors" in queries
        assert not any("teacher" in q for q in queries)
        assert "site:gov.kh entry requirements Cambodia" in queries
        assert not any("2025" in q for q in queries)

    def test_teachers_city(self) -> None:
        queries = build_fallback_queries("Teaching jobs in Siem Reap", "Siem Reap", "teachers", [])
        assert "Siem Reap work permit requirements teacher" in queries
        assert not any("visitors" in q for q in queries)

    def test_both_audiences(self) -> None:
        queries = build_fallback_queries("Cambodia Visa Changes", "Phnom Penh", "both", [])
        assert any("teacher" in q for q in queries)
        assert any("tourists" in q for q in queries)

    def test_no_broad_queries_for_one_word_title(self) -> None:
        queries = build_fallback_queries("Visas", "Cambodia wide", "travellers", [])
        assert queries[0] == "Cambodia entry requirements visitors"

    def test_skips_used_queries_case_insensitively(self) -> None:
        used = ["CAMBODIA EMBASSY VISA REQUIREMENTS"]
        queries = build_fallback_queries("Visas", "Cambodia wide", "travellers", used)
        assert "Cambodia embassy visa requirements" not in queries

    def test_no_duplicates(self) -> None:
        queries = build_fallback_queries("Cambodia Visa Changes", "Cambodia wide", "both", [])
        lowered = [q.lower() for q in queries]
        assert len(lowered) == len(set(lowered))
