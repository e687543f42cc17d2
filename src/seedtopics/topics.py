"""Stage B: topic variations grounded strictly in retrieved search results.

The generator's reply goes through two separate passes:

* ``validate_and_clean_topics`` repairs what it can (drops incomplete
  topics, clamps ``audienceFit``, strips forbidden dashes, filters
  ``sourceUrls`` to the allowed set) and builds ``NewsTopic`` objects.
* ``validate_topics_strict`` only inspects the cleaned list and reports
  every remaining constraint failure. The failure list is fed verbatim
  into the single corrective retry.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from seedtopics import config
from seedtopics.llm import TextGenerator, generate_json
from seedtopics.models import (
    VALID_AUDIENCE,
    AudienceFocus,
    NewsTopic,
    SearchResult,
    SuggestedKeywords,
)
from seedtopics.text import city_label, clean_text, has_forbidden_dash
from seedtopics.urls import canonicalize_url

logger = logging.getLogger(__name__)

MIN_TOPICS = 4
MAX_TOPICS = 8
MAX_SOURCE_URLS = 3
MAX_LIST_ITEMS = 6
_ATTEMPTS = 2  # first call + one corrective retry

_REQUIRED_FIELDS = ("id", "title", "angle", "whyItMatters")
_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")

_TOPIC_PROMPT = """\
You are a news editor for {site}, a website about moving to and visiting {country}.

CURRENT YEAR: {year}
SEED TITLE: "{seed_title}"
CITY FOCUS: {city_focus}
AUDIENCE: {audience}

SEARCH RESULTS:
{results}

TASK: Produce {min_t} to {max_t} blog topic variations based on the seed title and grounded in the search results above.

GROUNDING RULES:
1. Every topic must cite 1 to {max_urls} URLs chosen ONLY from the SEARCH RESULTS list above.
2. NEVER invent URLs. NEVER cite {own_domain}.
3. The FIRST topic MUST closely match the seed title and have "fromSeedTitle": true.
4. Other topics must be meaningfully different angles, not rewrites of the first, and have "fromSeedTitle": false.
5. Every topic title MUST include "{city}" (case-insensitive match is fine).
6. {year_rule}
7. audienceFit must ONLY be "TRAVELLERS" and/or "TEACHERS". No other values.
8. NEVER use em dashes (— or –) in any field. Use commas, colons, or semicolons instead.

Return ONLY this JSON (no markdown fences, no commentary):
{{
  "topics": [
    {{
      "id": "short-id",
      "title": "Blog post title",
      "angle": "Specific angle",
      "whyItMatters": "One sentence why the audience should care",
      "audienceFit": ["TRAVELLERS", "TEACHERS"],
      "suggestedKeywords": {{
        "target": "primary keyword phrase",
        "secondary": ["keyword2", "keyword3"]
      }},
      "searchQueries": ["query 1", "query 2", "query 3"],
      "intent": "One sentence describing user search intent",
      "outlineAngles": ["Sub-section 1", "Sub-section 2", "Sub-section 3"],
      "sourceUrls": ["https://exact-url-from-results"],
      "fromSeedTitle": true
    }}
  ]
}}"""

_FIX_PROMPT = """\
The previous topic generation had these problems:
{failures}

ALLOWED URLS (use ONLY these):
{allowed}

Previous output:
{previous}

Fix all issues and return the corrected JSON with the same schema.
RULES: {min_t}-{max_t} topics, first topic fromSeedTitle=true and the rest false, titles must include "{city}", {year_rule}audienceFit only TRAVELLERS/TEACHERS, sourceUrls 1-{max_urls} from allowed list only, no em dashes.

Return ONLY the JSON."""


@dataclass
class TopicGeneration:
    topics: list[NewsTopic]
    token_usage: int = 0


# ── Prompt helpers ─────────────────────────────────────────────────────────


def _audience_text(audience_focus: AudienceFocus) -> str:
    country = config.COUNTRY_NAME
    if audience_focus == "travellers":
        return f"travellers to {country}"
    if audience_focus == "teachers":
        return f"people interested in teaching English in {country}"
    return f"both travellers to {country} and people interested in teaching English there"


def _format_results(results: list[SearchResult]) -> str:
    """One line per result. Missing snippet/date/source are omitted, not stubbed."""
    lines = []
    for r in results:
        parts = [f'[{r.id}] "{r.title}"']
        if r.snippet:
            parts.append(r.snippet)
        parts.append(f"(URL: {r.url})")
        if r.published_at:
            parts.append(f"Published: {r.published_at}")
        if r.source_name:
            parts.append(f"Source: {r.source_name}")
        lines.append(" | ".join(parts))
    return "\n".join(lines)


def _year_locked(seed_title: str, current_year: int) -> bool:
    return str(current_year) in seed_title


# ── Cleaning ───────────────────────────────────────────────────────────────


def _str_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [clean_text(str(v).strip()) for v in value if str(v).strip()]
    return items[:limit] if limit is not None else items


def _audience_fit(value: Any) -> list[str]:
    fit: list[str] = []
    if isinstance(value, list):
        for a in value:
            a = str(a).strip().upper()
            if a in VALID_AUDIENCE and a not in fit:
                fit.append(a)
    return fit or ["TRAVELLERS", "TEACHERS"]


def _grounded_urls(value: Any, allowed: dict[str, str]) -> list[str]:
    """Keep URLs whose canonical form was retrieved; dedupe; cap."""
    urls: list[str] = []
    seen: set[str] = set()
    if not isinstance(value, list):
        return urls
    for raw in value:
        canonical = canonicalize_url(str(raw))
        if canonical not in allowed or canonical in seen:
            continue
        seen.add(canonical)
        urls.append(allowed[canonical])
    return urls[:MAX_SOURCE_URLS]


def validate_and_clean_topics(
    raw_topics: list[Any], allowed_urls: list[str]
) -> list[NewsTopic]:
    """Repair raw generator topics into ``NewsTopic`` objects.

    Topics missing ``id``, ``title``, ``angle`` or ``whyItMatters`` are
    dropped. Cited URLs are replaced by the retrieved URL with the same
    canonical form; anything else is discarded.
    """
    allowed: dict[str, str] = {}
    for url in allowed_urls:
        allowed.setdefault(canonicalize_url(url), url)

    topics: list[NewsTopic] = []
    for raw in raw_topics:
        if not isinstance(raw, dict):
            continue
        if not all(str(raw.get(f) or "").strip() for f in _REQUIRED_FIELDS):
            continue

        keywords = raw.get("suggestedKeywords")
        keywords = keywords if isinstance(keywords, dict) else {}
        title = clean_text(str(raw["title"]).strip())
        source_urls = _grounded_urls(raw.get("sourceUrls"), allowed)

        topics.append(
            NewsTopic(
                id=str(raw["id"]).strip(),
                title=title,
                angle=clean_text(str(raw["angle"]).strip()),
                why_it_matters=clean_text(str(raw["whyItMatters"]).strip()),
                audience_fit=_audience_fit(raw.get("audienceFit")),
                suggested_keywords=SuggestedKeywords(
                    target=clean_text(str(keywords.get("target") or title).strip()),
                    secondary=_str_list(keywords.get("secondary")),
                ),
                search_queries=_str_list(raw.get("searchQueries"), MAX_LIST_ITEMS),
                intent=clean_text(str(raw.get("intent") or "informational").strip()),
                outline_angles=_str_list(raw.get("outlineAngles"), MAX_LIST_ITEMS),
                source_urls=source_urls,
                source_count=len(source_urls),
                from_seed_title=raw.get("fromSeedTitle") is True,
            )
        )
    return topics


# ── Strict validation ──────────────────────────────────────────────────────


def _text_fields(topic: NewsTopic) -> list[str]:
    return [
        topic.title,
        topic.angle,
        topic.why_it_matters,
        topic.intent,
        topic.suggested_keywords.target,
        *topic.suggested_keywords.secondary,
        *topic.search_queries,
        *topic.outline_angles,
    ]


def validate_topics_strict(
    topics: list[NewsTopic],
    allowed_urls: list[str],
    city: str,
    seed_title: str,
    current_year: int,
) -> list[str]:
    """Report every constraint the topic list still violates. Never mutates."""
    failures: list[str] = []
    allowed = {canonicalize_url(u) for u in allowed_urls}
    city_lower = city.lower()
    year_locked = _year_locked(seed_title, current_year)

    if not MIN_TOPICS <= len(topics) <= MAX_TOPICS:
        failures.append(f"Expected {MIN_TOPICS}-{MAX_TOPICS} topics, got {len(topics)}.")

    if topics and not topics[0].from_seed_title:
        failures.append("First topic must have fromSeedTitle=true.")
    for t in topics[1:]:
        if t.from_seed_title:
            failures.append(f'Topic "{t.title}" is not first but has fromSeedTitle=true.')

    for t in topics:
        if city_lower not in t.title.lower():
            failures.append(f'Topic "{t.title}" does not include "{city}".')

        if year_locked:
            for year in _YEAR_RE.findall(t.title):
                if year != str(current_year):
                    failures.append(
                        f'Topic "{t.title}" uses year {year} instead of {current_year}.'
                    )

        for af in t.audience_fit:
            if af not in VALID_AUDIENCE:
                failures.append(f'Topic "{t.title}" has invalid audienceFit "{af}".')

        urls = t.source_urls
        if not 1 <= len(urls) <= MAX_SOURCE_URLS:
            failures.append(
                f'Topic "{t.title}" has {len(urls)} sourceUrls (need 1-{MAX_SOURCE_URLS}).'
            )
        canonical = [canonicalize_url(u) for u in urls]
        for url, canon in zip(urls, canonical):
            if canon not in allowed:
                failures.append(f'Topic "{t.title}" cites URL not in search results: {url}')
        if len(set(canonical)) != len(canonical):
            failures.append(f'Topic "{t.title}" has duplicate sourceUrls.')

        if any(has_forbidden_dash(field) for field in _text_fields(t)):
            failures.append(f'Em dash found in topic "{t.title}".')

    return failures


# ── Stage B ────────────────────────────────────────────────────────────────


def _raw_topics(data: dict[str, Any] | None) -> list[Any] | None:
    if not data or not isinstance(data.get("topics"), list):
        return None
    return data["topics"]


def generate_topic_variations(
    llm: TextGenerator,
    seed_title: str,
    city_focus: str,
    audience_focus: AudienceFocus,
    current_year: int,
    results: list[SearchResult],
) -> TopicGeneration:
    """Produce 4-8 grounded topics, retrying once with a corrective prompt."""
    city = city_label(city_focus)
    year_locked = _year_locked(seed_title, current_year)
    allowed_urls = [r.url for r in results]

    prompt = _TOPIC_PROMPT.format(
        site=config.SITE_NAME,
        country=config.COUNTRY_NAME,
        year=current_year,
        seed_title=seed_title,
        city_focus=city_focus,
        audience=_audience_text(audience_focus),
        results=_format_results(results),
        min_t=MIN_TOPICS,
        max_t=MAX_TOPICS,
        max_urls=MAX_SOURCE_URLS,
        own_domain=config.OWN_DOMAIN,
        city=city,
        year_rule=(
            f"Titles may use {current_year} but NEVER any other year."
            if year_locked
            else "Do not include years unless specifically relevant."
        ),
    )

    topics: list[NewsTopic] = []
    tokens = 0
    for attempt in range(_ATTEMPTS):
        reply = generate_json(llm, prompt)
        tokens += reply.token_count
        raw = _raw_topics(reply.data)
        cleaned = validate_and_clean_topics(raw or [], allowed_urls)

        if attempt == 0:
            topics = cleaned
        elif raw is not None and len(cleaned) >= MIN_TOPICS:
            topics = cleaned
        else:
            logger.warning("Stage B: retry unusable; keeping %d cleaned topics", len(topics))
            break

        failures = validate_topics_strict(topics, allowed_urls, city, seed_title, current_year)
        if not failures:
            break
        if attempt == 0:
            logger.info("Stage B: %d validation failures, retrying once", len(failures))
            prompt = _FIX_PROMPT.format(
                failures="\n".join(f"- {f}" for f in failures),
                allowed="\n".join(f"- {u}" for u in allowed_urls),
                previous=(
                    json.dumps(raw, indent=2, ensure_ascii=False)
                    if raw is not None
                    else (reply.text or "(no usable output)")
                ),
                min_t=MIN_TOPICS,
                max_t=MAX_TOPICS,
                city=city,
                year_rule=f"no year other than {current_year}, " if year_locked else "",
                max_urls=MAX_SOURCE_URLS,
            )
        else:
            logger.warning("Stage B: retry output still has %d failures", len(failures))

    return TopicGeneration(topics=topics, token_usage=tokens)
