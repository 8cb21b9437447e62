# smashaday/clue_client.py
from __future__ import annotations
import asyncio
import json
import logging
import os
import re
from typing import Any, Dict, Optional, Sequence, Tuple
import httpx

logger = logging.getLogger(__name__)

TAVILY_API_BASE = os.getenv("TAVILY_API_BASE", "https://api.tavily.com")
TAVILY_API_KEY = os.getenv("TAVILY_API_KEY")
OPENROUTER_API_BASE = os.getenv("OPENROUTER_API_BASE", "https://openrouter.ai/api/v1")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "openai/gpt-oss-120b")

BACKOFFS = (0.5, 1.5, 3.0)   # seconds slept after each failed attempt but the last
MAX_CLUE_WORDS = 30

SYSTEM_PROMPT = (
    "You are a clue-writing assistant for a trivia game.\n"
    "Write ONE clue for the given word.\n"
    "Rules:\n"
    "   - Indirect reference only\n"
    "   - Aim for 5-15 words, MUST be <=25\n"
    "   - Stand-alone sentence\n"
    'Return ONLY JSON object: {"clue":"..."}\n'
    "No other text."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

class ClueGenerationError(RuntimeError):
    pass

def parse_clue(raw: str, word: str) -> str:
    """Pull the clue out of a model reply and sense-check it."""
    text = _FENCE.sub("", (raw or "").strip())
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from model: {e}") from e
    clue = parsed.get("clue") if isinstance(parsed, dict) else None
    if not isinstance(clue, str) or not clue.strip():
        raise ValueError("Invalid response format")

    clue = clue.strip()
    n_words = len(clue.split())
    if n_words > MAX_CLUE_WORDS:
        raise ValueError(f"Clue too long: {n_words} words")
    if word.lower() in clue.lower():
        raise ValueError(f'Clue contains target word: "{word}"')
    return clue

class ClueClient:
    """
    Search context + clue generation for one word.
    Pass `http` to share (or mock) the underlying httpx.AsyncClient.
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None, backoffs: Sequence[float] = BACKOFFS):
        if not OPENROUTER_API_KEY and http is None:
            raise RuntimeError("OPENROUTER_API_KEY is not set")
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        self._owns_http = http is None
        self.backoffs = tuple(backoffs)

    async def aclose(self):
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ClueClient":
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def _post_json(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        r = await self._http.post(url, json=payload, headers=headers)
        r.raise_for_status()
        return r.json()

    async def _retry(self, what: str, word: str, call):
        last: Optional[Exception] = None
        for attempt, delay in enumerate(self.backoffs, start=1):
            try:
                return await call()
            except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
                last = e
                logger.warning("%s attempt %d failed for %r: %s", what, attempt, word, e)
                if attempt < len(self.backoffs):
                    await asyncio.sleep(delay)
        raise ClueGenerationError(f"{what} failed after all retries for {word!r}") from last

    async def fetch_context(self, word: str, category: str) -> Optional[str]:
        """Web-search answer for the word, or None when search is unavailable."""
        if not TAVILY_API_KEY:
            return None
        payload = {
            "api_key": TAVILY_API_KEY,
            "query": f"trivia facts and summary for {word} ({category})",
            "include_answer": "advanced",
            "max_results": 3,
        }

        async def call():
            data = await self._post_json(f"{TAVILY_API_BASE}/search", payload, {"accept": "application/json"})
            answer = data.get("answer") if isinstance(data, dict) else None
            return answer.strip() if isinstance(answer, str) and answer.strip() else None

        try:
            return await self._retry("Search", word, call)
        except ClueGenerationError:
            logger.error("Search failed after all retries for %r", word)
            return None

    async def generate_clue(self, word: str, category: str, context: Optional[str]) -> str:
        payload = {
            "model": OPENROUTER_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Word: {word}\nCategory: {category}\nContext: {context or ''}"},
            ],
        }
        headers = {
            "accept": "application/json",
            "HTTP-Referer": "https://smashaday.app",
            "X-Title": "SmashADay",
        }
        if OPENROUTER_API_KEY:
            headers["authorization"] = f"Bearer {OPENROUTER_API_KEY}"

        async def call():
            data = await self._post_json(f"{OPENROUTER_API_BASE}/chat/completions", payload, headers)
            content = data["choices"][0]["message"]["content"]
            if not isinstance(content, str) or not content.strip():
                raise ValueError("Empty response from model")
            return parse_clue(content, word)

        return await self._retry("Clue generation", word, call)

    async def clue_for(self, word: str, category: str) -> Tuple[str, bool]:
        """(clue, enriched) - enriched is True when search context backed the clue."""
        context = await self.fetch_context(word, category)
        if context is None:
            logger.info("Fallback to model-only clue for %r", word)
        clue = await self.generate_clue(word, category, context)
        return clue, context is not None
