"""Stage A: ask the generator for web-search queries derived from a seed title."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from seedtopics import config
from seedtopics.llm import TextGenerator, generate_json
from seedtopics.models import AudienceFocus
from seedtopics.text import city_label, has_forbidden_dash

logger = logging.getLogger(__name__)

MIN_QUERIES = 4
MAX_QUERIES = 6
_MIN_CITY_QUERIES = 2
_ATTEMPTS = 2  # first call + one corrective retry

_QUERY_PROMPT = """\
You are a research assistant for {site}, a website about {country} travel and teaching English.

TASK: Generate Google search queries to research the topic below.

SEED TITLE: "{seed_title}"
CITY FOCUS: {city_focus}
AUDIENCE: {audience}
CURRENT YEAR: {year}

RULES:
1. Return {min_q} to {max_q} search queries.
2. At least {min_city} queries MUST include the term "{city}".
3. {year_rule}
4. Queries must be specific. Too vague examples: "{country} tips", "travel advice".
5. Do NOT use em dashes (— or –) anywhere.
6. Each query should target a different angle or sub-topic.

Return ONLY this JSON (no markdown fences, no commentary):
{{
  "queries": ["query 1", "query 2", "query 3", "query 4"]
}}"""

_FIX_PROMPT = """\
The previous query generation had these problems:
{failures}

Original queries: {previous}

Fix the queries and return valid JSON:
{{
  "queries": ["query 1", "query 2", "query 3", "query 4"]
}}

RULES: {min_q}-{max_q} queries, at least {min_city} must include "{city}", {year_rule}no em dashes, be specific.

Return ONLY the JSON."""


@dataclass
class QueryGeneration:
    queries: list[str]
    token_usage: int = 0


def _audience_text(audience_focus: AudienceFocus) -> str:
    return "travellers and English teachers" if audience_focus == "both" else audience_focus


def _year_in_title(seed_title: str, current_year: int) -> bool:
    return str(current_year) in seed_title


def _extract_queries(data: dict | None) -> list[str]:
    if not data or not isinstance(data.get("queries"), list):
        return []
    return [q for q in (str(x).strip() for x in data["queries"]) if len(q) > 3]


def validate_queries(
    queries: list[str], city: str, seed_title: str, current_year: int
) -> list[str]:
    """Return human-readable constraint failures; empty means valid."""
    failures: list[str] = []
    if not MIN_QUERIES <= len(queries) <= MAX_QUERIES:
        failures.append(f"Expected {MIN_QUERIES}-{MAX_QUERIES} queries, got {len(queries)}.")

    city_lower = city.lower()
    city_count = sum(1 for q in queries if city_lower in q.lower())
    if city_count < _MIN_CITY_QUERIES:
        failures.append(
            f'At least {_MIN_CITY_QUERIES} queries must include "{city}". Found {city_count}.'
        )

    if _year_in_title(seed_title, current_year):
        if not any(str(current_year) in q for q in queries):
            failures.append(f"Seed title contains {current_year} but no query includes it.")

    for q in queries:
        if has_forbidden_dash(q):
            failures.append(f'Query "{q}" contains an em dash.')
    return failures


def generate_search_queries(
    llm: TextGenerator,
    seed_title: str,
    city_focus: str,
    audience_focus: AudienceFocus,
    current_year: int,
) -> QueryGeneration:
    """Produce 4-6 search queries, retrying once with a corrective prompt.

    A retry only replaces the first answer when it passes validation;
    otherwise the first answer is returned as-is, truncated to six.
    """
    city = city_label(city_focus)
    year_in_title = _year_in_title(seed_title, current_year)

    prompt = _QUERY_PROMPT.format(
        site=config.SITE_NAME,
        country=config.COUNTRY_NAME,
        seed_title=seed_title,
        city_focus=city_focus,
        audience=_audience_text(audience_focus),
        year=current_year,
        min_q=MIN_QUERIES,
        max_q=MAX_QUERIES,
        min_city=_MIN_CITY_QUERIES,
        city=city,
        year_rule=(
            f'At least 1 query MUST include "{current_year}".'
            if year_in_title
            else "Include the year if relevant to the topic."
        ),
    )

    queries: list[str] = []
    tokens = 0
    for attempt in range(_ATTEMPTS):
        reply = generate_json(llm, prompt)
        tokens += reply.token_count
        candidate = _extract_queries(reply.data)
        failures = validate_queries(candidate, city, seed_title, current_year)

        if attempt == 0 or not failures:
            queries = candidate
        if not failures:
            break

        if attempt == 0:
            logger.info("Stage A: %d validation failures, retrying once", len(failures))
            prompt = _FIX_PROMPT.format(
                failures="\n".join(f"- {f}" for f in failures),
                previous=json.dumps(candidate) if candidate else (reply.text or "(no output)"),
                min_q=MIN_QUERIES,
                max_q=MAX_QUERIES,
                min_city=_MIN_CITY_QUERIES,
                city=city,
                year_rule=f'at least 1 must include "{current_year}", ' if year_in_title else "",
            )
        else:
            logger.warning("Stage A: retry still invalid (%s)", "; ".join(failures))

    return QueryGeneration(queries=queries[:MAX_QUERIES], token_usage=tokens)
