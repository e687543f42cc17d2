"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]
POLICY_PATH: Path = Path(
    os.getenv("SEEDTOPICS_POLICY_PATH", str(PROJECT_ROOT / "config" / "domain_policy.yml"))
)
DB_PATH: Path = Path(
    os.getenv("SEEDTOPICS_DB_PATH", str(PROJECT_ROOT / "var" / "titles.sqlite3"))
)

# ── LLM ────────────────────────────────────────────────────────────────────
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
LLM_API_KEY: str = os.getenv("LLM_API_KEY", "")
LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash")
LLM_BASE_URL: str = os.getenv(
    "LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
)
LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", "60"))

# ── Web search (Google Custom Search) ──────────────────────────────────────
GOOGLE_CSE_API_KEY: str = os.getenv("GOOGLE_CSE_API_KEY", "")
GOOGLE_CSE_ID: str = os.getenv("GOOGLE_CSE_ID", "")
SEARCH_TIMEOUT: float = float(os.getenv("SEARCH_TIMEOUT", "8"))
SEARCH_RESULTS_PER_QUERY: int = int(os.getenv("SEARCH_RESULTS_PER_QUERY", "10"))
SEARCH_RECENCY_DAYS: int = int(os.getenv("SEARCH_RECENCY_DAYS", "30"))

# ── Pipeline thresholds ────────────────────────────────────────────────────
MIN_SOURCES: int = int(os.getenv("SEEDTOPICS_MIN_SOURCES", "6"))
TARGET_SOURCES: int = int(os.getenv("SEEDTOPICS_TARGET_SOURCES", "15"))
FALLBACK_QUERY_LIMIT: int = 6

# ── Site / locale ──────────────────────────────────────────────────────────
COUNTRY_NAME: str = os.getenv("SEEDTOPICS_COUNTRY", "Cambodia")
WHOLE_COUNTRY: str = f"{COUNTRY_NAME} wide"
OWN_DOMAIN: str = os.getenv("SEEDTOPICS_OWN_DOMAIN", "globescraper.com")
SITE_NAME: str = os.getenv("SEEDTOPICS_SITE_NAME", "GlobeScraper")

CITY_CHOICES: tuple[str, ...] = ("Phnom Penh", "Siem Reap", WHOLE_COUNTRY)
AUDIENCE_CHOICES: tuple[str, ...] = ("travellers", "teachers", "both")
