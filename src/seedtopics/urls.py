"""URL canonicalization helpers for source identity and dedup."""

from __future__ import annotations

import re
import string
from urllib.parse import parse_qsl, urlencode, urlsplit

TRACKING_PARAMS: frozenset[str] = frozenset(
    {
        # click ids
        "fbclid",
        "gclid",
        "gclsrc",
        "msclkid",
        "dclid",
        # referral
        "ref",
        "ref_src",
        "ref_url",
    }
)

_DEFAULT_PORTS = {"http": 80, "https": 443}
_SCHEME_WWW_RE = re.compile(r"^([a-z][a-z0-9+.-]*://)?(?:www\.)+", re.IGNORECASE)
_TRAILING = "/" + string.whitespace
_MAX_PASSES = 4


def _is_tracking(key: str) -> bool:
    lower = key.lower()
    return lower.startswith("utm_") or lower in TRACKING_PARAMS


def _strip_www(host: str) -> str:
    while host.startswith("www."):
        host = host[4:]
    return host


def _trim(raw: str) -> str:
    """Drop surrounding whitespace and every trailing slash."""
    return raw.strip().rstrip(_TRAILING)


def _best_effort(raw: str) -> str:
    """String-only cleanup for input that does not parse as an absolute URL."""
    out = raw
    while True:
        cleaned = _trim(_SCHEME_WWW_RE.sub(lambda m: m.group(1) or "", _trim(out)))
        if cleaned == out:
            return out
        out = cleaned


def _canonicalize_once(raw: str) -> str:
    try:
        parts = urlsplit(raw)
        host = parts.hostname or ""
        port = parts.port
    except ValueError:
        return _best_effort(raw)
    if not parts.scheme or not host:
        return _best_effort(raw)

    host = _strip_www(host)
    if not host or any(ch.isspace() for ch in host):
        return _best_effort(raw)
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        netloc = f"{host}:{port}"

    path = parts.path.rstrip(_TRAILING)
    kept = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking(k)
    ]

    out = f"{parts.scheme}://{netloc}{path}"
    if kept:
        out += f"?{urlencode(kept)}"
    return out


def canonicalize_url(url: str) -> str:
    """Canonicalize a URL so that equal sources compare equal.

    - Lowercase scheme + hostname, drop leading ``www.``
    - Drop userinfo, default ports and the fragment
    - Strip tracking query parameters (``utm_*``, click ids, referral)
    - Strip trailing slashes and whitespace
    - Keep remaining query params in their original order

    Never raises: anything that cannot be parsed falls back to a
    best-effort string transform. The result is a fixed point, so
    canonicalizing it again returns it unchanged.
    """
    out = _canonicalize_once(_trim(url or ""))
    for _ in range(_MAX_PASSES):
        again = _canonicalize_once(out)
        if again == out:
            break
        out = again
    return out


def extract_hostname(url: str) -> str:
    """Return the lowercase hostname without ``www.``, or ``""`` if unparsable."""
    try:
        host = urlsplit((url or "").strip()).hostname or ""
    except ValueError:
        return ""
    return _strip_www(host)
