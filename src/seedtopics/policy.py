"""Domain trust policy: blocklist, high-trust list, own domain and publisher registry."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from seedtopics import config
from seedtopics.urls import extract_hostname

logger = logging.getLogger(__name__)


class TrustedSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain: str
    publisher: str
    category: str = "GENERAL"


class DomainPolicy(BaseModel):
    """Read-only classification tables, passed explicitly to whoever needs them."""

    model_config = ConfigDict(frozen=True)

    blocked_domains: frozenset[str] = Field(default_factory=frozenset)
    high_trust_domains: frozenset[str] = Field(default_factory=frozenset)
    own_domain: str = config.OWN_DOMAIN
    trusted_sources: tuple[TrustedSource, ...] = ()

    # ── public ──────────────────────────────────────────────────────────

    def is_blocked_domain(self, url: str) -> bool:
        """True for blocklisted hosts. Unparsable URLs count as blocked."""
        hostname = extract_hostname(url)
        if not hostname:
            return True
        return _matches(hostname, self.blocked_domains)

    def is_high_trust(self, hostname: str) -> bool:
        return _matches(hostname.lower(), self.high_trust_domains)

    def is_own_domain(self, hostname: str) -> bool:
        return bool(self.own_domain) and _matches(hostname.lower(), (self.own_domain,))

    def find_trusted_source(self, url: str) -> TrustedSource | None:
        hostname = extract_hostname(url)
        if not hostname:
            return None
        for source in self.trusted_sources:
            if _matches(hostname, (source.domain,)):
                return source
        return None

    def publisher_name(self, url: str) -> str:
        """Registry publisher, else the capitalised first label of the hostname."""
        source = self.find_trusted_source(url)
        if source is not None:
            return source.publisher
        hostname = extract_hostname(url)
        if not hostname:
            return "Unknown"
        return hostname.split(".")[0].capitalize()


def _matches(hostname: str, domains: Any) -> bool:
    """Exact or subdomain match against any of *domains*."""
    return any(hostname == d or hostname.endswith("." + d) for d in domains)


# ── Defaults ───────────────────────────────────────────────────────────────
_BLOCKED: tuple[str, ...] = (
    "pinterest.com", "facebook.com", "instagram.com", "tiktok.com",
    "youtube.com", "twitter.com", "x.com", "medium.com", "quora.com",
    "blogspot.com", "wordpress.com", "tumblr.com",
)

_HIGH_TRUST: tuple[str, ...] = (
    "gov.kh", "gov.uk", "gov.au", "gov.sg", "state.gov",
    "iata.org", "icao.int",
    "reuters.com", "apnews.com", "bbc.com", "bbc.co.uk",
    "aljazeera.com", "thediplomat.com",
    "phnompenhpost.com", "khmertimeskh.com", "cambodianess.com",
    "lonelyplanet.com",
    "immigration.gov.kh", "evisa.gov.kh", "mfaic.gov.kh",
)

_REGISTRY: tuple[tuple[str, str, str], ...] = (
    ("evisa.gov.kh", "Cambodia eVisa", "OFFICIAL_GOV"),
    ("mfaic.gov.kh", "Cambodia Ministry of Foreign Affairs", "OFFICIAL_GOV"),
    ("immigration.gov.kh", "Cambodia Immigration", "OFFICIAL_GOV"),
    ("tourismcambodia.com", "Cambodia Tourism Board", "OFFICIAL_TOURISM"),
    ("mot.gov.kh", "Cambodia Ministry of Tourism", "OFFICIAL_TOURISM"),
    ("cambodia-airports.aero", "Cambodia Airports", "OFFICIAL_TOURISM"),
    ("reuters.com", "Reuters", "INTERNATIONAL_NEWS"),
    ("apnews.com", "Associated Press", "INTERNATIONAL_NEWS"),
    ("thediplomat.com", "The Diplomat", "INTERNATIONAL_NEWS"),
    ("aljazeera.com", "Al Jazeera", "INTERNATIONAL_NEWS"),
    ("bbc.com", "BBC News", "INTERNATIONAL_NEWS"),
    ("bbc.co.uk", "BBC News", "INTERNATIONAL_NEWS"),
    ("phnompenhpost.com", "Phnom Penh Post", "LOCAL_NEWS"),
    ("khmertimeskh.com", "Khmer Times", "LOCAL_NEWS"),
    ("cambodianess.com", "Cambodianess", "LOCAL_NEWS"),
    ("southeastasiaglobe.com", "Southeast Asia Globe", "LOCAL_NEWS"),
    ("vodenglish.news", "VOD English", "LOCAL_NEWS"),
    ("move2cambodia.com", "Move to Cambodia", "EXPAT_COMMUNITY"),
    ("expatinkh.com", "Expat in KH", "EXPAT_COMMUNITY"),
    ("lonelyplanet.com", "Lonely Planet", "TRAVEL_INFO"),
    ("theculturetrip.com", "Culture Trip", "TRAVEL_INFO"),
    ("goabroad.com", "Go Abroad", "TEACHING"),
    ("internationalteflacademy.com", "International TEFL Academy", "TEACHING"),
    ("teflcourse.net", "TEFL Course", "TEACHING"),
)

DEFAULT_POLICY = DomainPolicy(
    blocked_domains=frozenset(_BLOCKED),
    high_trust_domains=frozenset(_HIGH_TRUST),
    own_domain=config.OWN_DOMAIN,
    trusted_sources=tuple(
        TrustedSource(domain=d, publisher=p, category=c) for d, p, c in _REGISTRY
    ),
)


def _domain_list(values: Any) -> frozenset[str]:
    return frozenset(str(v).strip().lower() for v in values or [] if str(v).strip())


def load_policy(path: str | Path | None = None) -> DomainPolicy:
    """Load a ``domain_policy.yml`` file. Missing keys keep their defaults.

    Recognised keys: ``blocked_domains``, ``high_trust_domains``,
    ``own_domain`` and ``trusted_sources`` (list of domain/publisher/category).
    """
    p = Path(path) if path is not None else config.POLICY_PATH
    if not p.exists():
        logger.warning("Policy file not found, using defaults: %s", p)
        return DEFAULT_POLICY

    with open(p, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    overrides: dict[str, Any] = {}
    if "blocked_domains" in cfg:
        overrides["blocked_domains"] = _domain_list(cfg["blocked_domains"])
    if "high_trust_domains" in cfg:
        overrides["high_trust_domains"] = _domain_list(cfg["high_trust_domains"])
    if cfg.get("own_domain"):
        overrides["own_domain"] = str(cfg["own_domain"]).strip().lower()
    if "trusted_sources" in cfg:
        overrides["trusted_sources"] = tuple(
            TrustedSource(**entry) for entry in cfg["trusted_sources"] or []
        )

    policy = DEFAULT_POLICY.model_copy(update=overrides)
    logger.info(
        "Loaded domain policy from %s (%d blocked, %d high-trust, %d registry)",
        p,
        len(policy.blocked_domains),
        len(policy.high_trust_domains),
        len(policy.trusted_sources),
    )
    return policy
