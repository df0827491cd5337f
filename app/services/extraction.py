# app/services/extraction.py
"""
Location extraction: free-text incident description → candidate place name.

Two strategies, tried in order:
  1. Gemini few-shot prompt (only when GEMINI_API_KEY is set)
  2. Keyword table + capitalised-word heuristic (no network, always answers)

An extractor returns None to hand over to the next one.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Protocol, Sequence, Tuple

import httpx

from app.core.settings import settings

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"

DEFAULT_LOCATION_KEYWORDS: Tuple[str, ...] = (
    "manhattan", "nyc", "new york", "los angeles", "la", "california", "dallas", "texas",
    "chicago", "illinois", "miami", "florida", "seattle", "washington", "boston", "massachusetts",
    "philadelphia", "pennsylvania", "phoenix", "arizona", "san antonio", "houston", "austin",
    "san diego", "denver", "colorado", "atlanta", "georgia", "nashville", "tennessee",
    "kakinada", "andhra pradesh", "andrapradesh", "india",
)

_PROMPT_TEMPLATE = """Extract the specific location name from this disaster description. Return only the location name, nothing else. If no specific location is mentioned, return "Unknown Location".

Description: {description}

Examples:
- "Heavy flooding in Manhattan" → "Manhattan"
- "Wildfire spreading in Los Angeles County" → "Los Angeles"
- "Tornado touchdown in Dallas suburbs" → "Dallas"
- "Earthquake in Tokyo" → "Tokyo"

Location:"""


def build_prompt(description: str) -> str:
    return _PROMPT_TEMPLATE.format(description=description)


class LocationExtractor(Protocol):
    async def extract(self, description: str) -> Optional[str]:
        ...


# ──────────────────────────────────────────────────────────────
# Semantic (Gemini)
# ──────────────────────────────────────────────────────────────

def _first_candidate_text(data: Any) -> Optional[str]:
    """
    First non-empty part text of a generateContent reply.

    "" when the reply is well formed but carries no text; None when it isn't
    shaped like a generateContent reply at all.
    """
    if not isinstance(data, dict):
        return None
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        return None
    for cand in candidates:
        if not isinstance(cand, dict):
            return None
        content = cand.get("content") or {}
        if not isinstance(content, dict):
            return None
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            return None
        for part in parts:
            if not isinstance(part, dict):
                return None
            text = part.get("text")
            if isinstance(text, str) and text.strip():
                return text.strip()
    return ""


class GeminiExtractor:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = settings.gemini_api_key if api_key is None else api_key
        self._model = model or settings.gemini_model
        self._base = (base_url or settings.gemini_base_url).rstrip("/")
        self._timeout = float(timeout_s or settings.extraction_timeout_s)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def extract(self, description: str) -> Optional[str]:
        if not self._api_key:
            return None

        url = f"{self._base}/models/{self._model}:generateContent"
        body = {"contents": [{"parts": [{"text": build_prompt(description)}]}]}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                r = await client.post(
                    url,
                    params={"key": self._api_key},
                    headers={"Content-Type": "application/json"},
                    json=body,
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            logger.warning("gemini_extract_failed status=%d", e.response.status_code)
            return None
        except httpx.HTTPError as e:
            logger.warning("gemini_extract_failed error=%s", e)
            return None
        except ValueError as e:
            logger.warning("gemini_extract_failed invalid_json=%s", e)
            return None

        text = _first_candidate_text(data)
        if text is None:
            logger.warning("gemini_extract_failed reason=malformed_reply")
            return None
        if not text:
            # Answered, but named nothing.
            logger.info("gemini_extract_ok location_name=%r reason=empty_text", UNKNOWN_LOCATION)
            return UNKNOWN_LOCATION

        logger.info("gemini_extract_ok location_name=%r", text)
        return text


# ──────────────────────────────────────────────────────────────
# Deterministic keywords
# ──────────────────────────────────────────────────────────────

def _capitalised_word(description: str) -> Optional[str]:
    # Any capitalised plain word; can pick up non-places ("Heavy", "Red").
    for word in description.split():
        if len(word) > 2 and word.isascii() and word.isalpha() and word[0].isupper():
            return word
    return None


class KeywordExtractor:
    def __init__(self, keywords: Iterable[str] = DEFAULT_LOCATION_KEYWORDS) -> None:
        self._keywords: Tuple[str, ...] = tuple(k.strip().lower() for k in keywords if k and k.strip())

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self._keywords

    async def extract(self, description: str) -> Optional[str]:
        return self.extract_sync(description)

    def extract_sync(self, description: str) -> str:
        hay = (description or "").lower()
        for keyword in self._keywords:
            if keyword in hay:
                return keyword[0].upper() + keyword[1:]

        return _capitalised_word(description or "") or UNKNOWN_LOCATION


# ──────────────────────────────────────────────────────────────
# Chain
# ──────────────────────────────────────────────────────────────

class ExtractionChain:
    def __init__(self, extractors: Sequence[LocationExtractor]) -> None:
        self.extractors = list(extractors)

    async def extract(self, description: str) -> str:
        for extractor in self.extractors:
            name = await extractor.extract(description)
            if name:
                logger.info(
                    "location_extracted strategy=%s location_name=%r",
                    type(extractor).__name__,
                    name,
                )
                return name
        return UNKNOWN_LOCATION


def default_extraction_chain() -> ExtractionChain:
    extractors: list[LocationExtractor] = []
    gemini = GeminiExtractor()
    if gemini.configured:
        extractors.append(gemini)
    extractors.append(KeywordExtractor())
    return ExtractionChain(extractors)
