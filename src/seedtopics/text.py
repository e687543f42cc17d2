"""Small text helpers shared by the generation stages and the scorer."""

from __future__ import annotations

import re

from seedtopics import config

# Em dash and en dash are banned from every piece of generated free text.
FORBIDDEN_DASHES: tuple[str, ...] = ("—", "–")
_DASH_RE = re.compile(r"\s*[—–]\s*")


def clean_text(text: str) -> str:
    """Replace forbidden dashes with a comma separator."""
    return _DASH_RE.sub(", ", text)


def has_forbidden_dash(text: str) -> bool:
    return any(dash in text for dash in FORBIDDEN_DASHES)


def city_label(city_focus: str) -> str:
    """Resolve the whole-country sentinel to the bare country name."""
    return config.COUNTRY_NAME if city_focus == config.WHOLE_COUNTRY else city_focus


def mentions(text: str | None, *needles: str) -> bool:
    """Case-insensitive substring check against any of *needles*."""
    if not text:
        return False
    lower = text.lower()
    return any(n.lower() in lower for n in needles if n)
