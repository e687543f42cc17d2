"""Text-generation client and JSON extraction for LLM replies."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, NamedTuple, Protocol

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)

# ── System prompt used for every generation call ──────────────────────────
_SYSTEM_PROMPT = (
    "You are a careful research assistant for a travel website. "
    "Follow every rule in the user's message exactly and reply with JSON only."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class LLMError(Exception):
    """Raised when the text-generation service fails or times out."""


class LLMOutputError(ValueError):
    """Raised when a reply cannot be parsed as a JSON object."""


class Generation(NamedTuple):
    text: str
    token_count: int = 0


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> Generation: ...


class JsonReply(NamedTuple):
    data: dict[str, Any] | None
    text: str
    token_count: int


class LLMClient:
    """Chat-completions client. Works with any OpenAI-compatible endpoint."""

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ValueError("LLM_API_KEY is required but was empty.")
        if provider.lower() != "openai":
            raise ValueError(f"Unknown LLM_PROVIDER '{provider}'; only 'openai' is supported.")
        self._model = model
        self._client = OpenAI(
            api_key=api_key, base_url=base_url or None, timeout=timeout, max_retries=1
        )

    def generate(self, prompt: str) -> Generation:
        """Send one prompt and return the raw reply text plus total tokens."""
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.7,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise LLMError(f"Text generation failed: {exc}") from exc

        if not resp.choices:
            raise LLMError("Text generation returned no choices.")
        text = resp.choices[0].message.content or ""
        tokens = resp.usage.total_tokens if resp.usage else 0
        return Generation(text=text, token_count=tokens or 0)


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a reply that should be a JSON object.

    Tolerates markdown code fences and commentary around the object.
    """
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise LLMOutputError("Reply does not contain a JSON object.") from None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise LLMOutputError(f"Reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LLMOutputError("Reply JSON is not an object.")
    return parsed


def generate_json(generator: TextGenerator, prompt: str) -> JsonReply:
    """Call *generator* and parse its reply.

    A failed call or an unparsable reply yields ``data=None`` instead of an
    exception, so callers can go down their retry path.
    """
    try:
        reply = generator.generate(prompt)
    except LLMError:
        logger.warning("Text generation call failed", exc_info=True)
        return JsonReply(data=None, text="", token_count=0)

    try:
        data = parse_json_object(reply.text)
    except LLMOutputError as exc:
        logger.warning("Unusable generator output: %s", exc)
        return JsonReply(data=None, text=reply.text, token_count=reply.token_count)
    return JsonReply(data=data, text=reply.text, token_count=reply.token_count)
