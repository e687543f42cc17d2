"""Minimal Google Custom Search JSON API client (read-only)."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from seedtopics.models import RawSearchItem

logger = logging.getLogger(__name__)

_CSE_URL = "https://www.googleapis.com/customsearch/v1"

# The CSE API never returns more than 10 items per request.
_MAX_NUM = 10


class SearchClientError(Exception):
    """Raised when the search provider fails or returns an unexpected response."""


class WebSearch(Protocol):
    def search(
        self, query: str, max_results: int, recency_days: int
    ) -> list[RawSearchItem]: ...


class UnconfiguredSearch:
    """Stand-in used when no search credentials are set: every query finds nothing."""

    def search(
        self, query: str, max_results: int = 10, recency_days: int = 30
    ) -> list[RawSearchItem]:
        logger.debug("Search not configured; skipping query: %s", query)
        return []


class SearchClient:
    """Thin wrapper around ``GET /customsearch/v1``."""

    def __init__(self, api_key: str, cse_id: str, timeout: float = 8.0) -> None:
        if not api_key or not cse_id:
            raise ValueError("GOOGLE_CSE_API_KEY and GOOGLE_CSE_ID are required.")
        self._api_key = api_key
        self._cse_id = cse_id
        self._timeout = timeout
        self._session = requests.Session()

    # ── public ──────────────────────────────────────────────────────────
    def search(
        self, query: str, max_results: int = 10, recency_days: int = 30
    ) -> list[RawSearchItem]:
        """Execute a single query and return the raw items, unvalidated."""
        params: dict[str, Any] = {
            "key": self._api_key,
            "cx": self._cse_id,
            "q": query,
            "num": min(max(max_results, 1), _MAX_NUM),
            "dateRestrict": f"d{recency_days}",
            "sort": "date",
        }

        data = self._get(params)
        items_raw: list[dict[str, Any]] = data.get("items") or []
        if not items_raw:
            logger.info("No results for query: %s", query)
            return []

        items = [self._parse_item(raw) for raw in items_raw if isinstance(raw, dict)]
        logger.info("Fetched %d items for query: %s", len(items), query)
        return items

    # ── private ─────────────────────────────────────────────────────────
    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._session.get(_CSE_URL, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise SearchClientError(f"Search request failed: {exc}") from exc
        if resp.status_code != 200:
            raise SearchClientError(
                f"Search API returned {resp.status_code}: {resp.text[:500]}"
            )
        try:
            return resp.json()  # type: ignore[no-any-return]
        except ValueError as exc:
            raise SearchClientError("Search API returned invalid JSON") from exc

    @staticmethod
    def _parse_item(raw: dict[str, Any]) -> RawSearchItem:
        metatags = (raw.get("pagemap") or {}).get("metatags") or [{}]
        published = metatags[0].get("article:published_time") if metatags else None
        return RawSearchItem(
            title=raw.get("title"),
            url=raw.get("link"),
            snippet=raw.get("snippet"),
            published_date=published,
            display_link=raw.get("displayLink"),
        )
