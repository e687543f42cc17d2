"""Domain models used across the pipeline."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AudienceFit = Literal["TRAVELLERS", "TEACHERS"]
AudienceFocus = Literal["travellers", "teachers", "both"]

VALID_AUDIENCE: frozenset[str] = frozenset({"TRAVELLERS", "TEACHERS"})


class _Model(BaseModel):
    # Attributes are snake_case; dumps with by_alias=True use the camelCase wire names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawSearchItem(_Model):
    """One item as returned by the search provider, before any validation."""

    title: str | None = None
    url: str | None = None
    snippet: str | None = None
    published_date: str | None = None
    display_link: str | None = None


class SearchResult(_Model):
    id: str
    query: str
    title: str
    snippet: str | None = None
    url: str = Field(min_length=1)
    published_at: str | None = None
    source_name: str | None = None
    score: int = 0


class QueryStats(_Model):
    model_config = ConfigDict(frozen=True)

    query: str
    raw_count: int = 0
    normalized_count: int = 0
    kept_count: int = 0
    top_domains: list[str] = Field(default_factory=list)


class RejectionCounts(_Model):
    missing_url: int = 0
    missing_title: int = 0
    blocked_domain: int = 0
    duplicate_url: int = 0
    own_domain: int = 0

    def merged(self, other: RejectionCounts) -> RejectionCounts:
        """Return a new set of counters with *other* added field by field."""
        return RejectionCounts(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in RejectionCounts.model_fields
            }
        )

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in RejectionCounts.model_fields)


class SuggestedKeywords(_Model):
    model_config = ConfigDict(frozen=True)

    target: str
    secondary: list[str] = Field(default_factory=list)


class NewsTopic(_Model):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    angle: str
    why_it_matters: str
    audience_fit: list[AudienceFit] = Field(min_length=1)
    suggested_keywords: SuggestedKeywords
    search_queries: list[str] = Field(default_factory=list, max_length=6)
    intent: str = "informational"
    outline_angles: list[str] = Field(default_factory=list, max_length=6)
    source_urls: list[str] = Field(default_factory=list, max_length=3)
    source_count: int = 0
    from_seed_title: bool = False


class PipelineLog(_Model):
    model_config = ConfigDict(frozen=True)

    seed_title: str
    city_focus: str
    audience_focus: AudienceFocus
    query_list: list[str] = Field(default_factory=list)
    query_stats: list[QueryStats] = Field(default_factory=list)
    usable_result_count: int = 0
    rejections: RejectionCounts = Field(default_factory=RejectionCounts)
    fallback_used: bool = False
    total_token_usage: int = 0
    topics_count: int = 0


class PipelineResult(_Model):
    topics: list[NewsTopic] = Field(default_factory=list)
    log: PipelineLog
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SimilarityCheckResult(_Model):
    is_duplicate: bool
    reason: str | None = None
    closest_titles: list[str] = Field(default_factory=list)
