"""Unit tests for the SQLite title store and topic dedupe."""

from pathlib import Path

import pytest
from fakes import topic_dict

from seedtopics.dedupe import dedupe
from seedtopics.store import TitleStore
from seedtopics.topics import validate_and_clean_topics

URL = "https://reuters.com/a"


def _topics(*titles: str):
    raw = [topic_dict(i, [URL], title=t) for i, t in enumerate(titles)]
    return validate_and_clean_topics(raw, [URL])


class TestTitleStore:
    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        TitleStore(db_path=tmp_path / "nested" / "titles.sqlite3")
        assert (tmp_path / "nested" / "titles.sqlite3").exists()

    def test_insert_and_read_newest_first(self, tmp_path: Path) -> None:
        store = TitleStore(db_path=tmp_path / "t.db")
        store.insert("First title", status="PUBLISHED")
        store.insert("Second title")
        store.insert("First title", status="DRAFT")
        assert store.existing_titles() == ["First title", "Second title"]

    def test_limit(self, tmp_path: Path) -> None:
        store = TitleStore(db_path=tmp_path / "t.db")
        for i in range(5):
            store.insert(f"Title {i}")
        assert store.existing_titles(limit=2) == ["Title 4", "Title 3"]

    def test_limit_counts_distinct_titles(self, tmp_path: Path) -> None:
        store = TitleStore(db_path=tmp_path / "t.db")
        store.insert("Old title")
        for _ in range(4):
            store.insert("Repeated title")
        store.insert("New title")
        assert store.existing_titles(limit=3) == ["New title", "Repeated title", "Old title"]

    def test_rejects_unknown_status(self, tmp_path: Path) -> None:
        store = TitleStore(db_path=tmp_path / "t.db")
        with pytest.raises(ValueError):
            store.insert("Title", status="ARCHIVED")

    def test_insert_many(self, tmp_path: Path) -> None:
        store = TitleStore(db_path=tmp_path / "t.db")
        topics = _topics("Cambodia one", "Cambodia two")
        assert store.insert_many(topics, seed_title="seed") == 2
        assert store.existing_titles() == ["Cambodia two", "Cambodia one"]


class TestDedupe:
    def test_flags_existing_titles(self) -> None:
        topics = _topics("Cambodia Visa Changes 2025", "Phnom Penh teaching jobs in Cambodia")
        fresh, duplicates = dedupe(topics, ["cambodia visa changes 2025!"])
        assert [t.title for t in fresh] == ["Phnom Penh teaching jobs in Cambodia"]
        [(topic, check)] = duplicates
        assert topic.title == "Cambodia Visa Changes 2025"
        assert check.reason.startswith("Exact match")

    def test_flags_duplicates_within_batch(self) -> None:
        topics = _topics("Cambodia e-visa fees explained", "Cambodia e-visa fees explained")
        fresh, duplicates = dedupe(topics, [])
        assert len(fresh) == 1
        assert len(duplicates) == 1

    def test_all_fresh(self) -> None:
        topics = _topics("Cambodia one thing", "Siem Reap another thing in Cambodia")
        fresh, duplicates = dedupe(topics, [])
        assert len(fresh) == 2
        assert duplicates == []
