"""In-memory stand-ins for the text-generation service and search provider."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from seedtopics.llm import Generation, LLMError
from seedtopics.models import RawSearchItem


class FakeGenerator:
    """Replays scripted replies in order and records every prompt.

    A reply may be a ``dict`` (serialised to JSON), a ``str`` (returned
    verbatim) or an exception instance (raised).
    """

    def __init__(self, replies: list[Any], tokens: int = 100) -> None:
        self._replies = list(replies)
        self._tokens = tokens
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> Generation:
        self.prompts.append(prompt)
        if not self._replies:
            raise LLMError("no scripted reply left")
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return Generation(text=text, token_count=self._tokens)


class FakeSearch:
    """Answers queries from a mapping or a callable; records every call."""

    def __init__(
        self,
        responses: dict[str, list[RawSearchItem]] | None = None,
        default: Callable[[str], list[RawSearchItem]] | None = None,
    ) -> None:
        self._responses = responses or {}
        self._default = default
        self.calls: list[str] = []

    def search(self, query: str, max_results: int, recency_days: int) -> list[RawSearchItem]:
        self.calls.append(query)
        if query in self._responses:
            return self._responses[query]
        if self._default is not None:
            return self._default(query)
        return []


def item(
    url: str | None,
    title: str | None = "Cambodia news article",
    snippet: str | None = "A useful snippet about entry rules in Cambodia for visitors.",
) -> RawSearchItem:
    return RawSearchItem(title=title, url=url, snippet=snippet)


def topic_dict(
    idx: int,
    urls: list[str],
    title: str | None = None,
    from_seed: bool = False,
    **overrides: Any,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": f"t{idx}",
        "title": title or f"Cambodia visa angle {idx} for 2025",
        "angle": f"Angle {idx}",
        "whyItMatters": "Readers need to plan ahead.",
        "audienceFit": ["TRAVELLERS"],
        "suggestedKeywords": {"target": "cambodia visa", "secondary": ["e-visa"]},
        "searchQueries": ["cambodia visa 2025"],
        "intent": "informational",
        "outlineAngles": ["Who is affected", "What changed"],
        "sourceUrls": urls,
        "fromSeedTitle": from_seed,
    }
    raw.update(overrides)
    return raw
