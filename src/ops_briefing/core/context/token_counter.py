"""Token counting for briefing context assembly.

Provides exact token counts via the Anthropic token counting endpoint with
a deterministic character-based fallback.

Key Components:
    - estimate_tokens(): ceil(len / 4) approximation, no external state
    - TokenCounter: Exact counter with silent-but-observable fallback

Usage:
    from ops_briefing.core.context.token_counter import TokenCounter

    counter = TokenCounter(api_key="sk-ant-...", model="claude-opus-4-5-20251101")
    tokens = await counter.count("<work_items count=\"3\">...</work_items>")
    if counter.last_used_fallback:
        logger.info("count was approximated")
"""

from __future__ import annotations

import inspect
import logging
import math
import os
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_API_BASE_URL = "https://api.anthropic.com"
COUNT_TOKENS_ENDPOINT = "/v1/messages/count_tokens"
ANTHROPIC_API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-opus-4-5-20251101"
DEFAULT_TIMEOUT = 10.0

# Characters per token for the fallback approximation
CHARS_PER_TOKEN = 4

CounterFunc = Callable[[str], Union[int, Awaitable[int]]]


def estimate_tokens(text: Optional[str]) -> int:
    """Estimate the token count for text using a 4 chars/token heuristic.

    This is a rough approximation; actual counts vary by model.

    Args:
        text: Text to estimate (None and "" count as 0)

    Returns:
        ceil(len(text) / 4)
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenCountError(Exception):
    """Raised when the exact token counting call cannot produce a count."""


class TokenCounter:
    """Counts tokens with the Anthropic API, falling back to an estimate.

    A single failed call (missing key, network, auth, rate limit, malformed
    response) falls back to ``estimate_tokens`` immediately; there are no
    retries. Callers are never told which path produced a count, but the
    counter records it for auditing.

    Attributes:
        api_count: Number of counts served by the exact counter
        fallback_count: Number of counts served by the approximation
        last_used_fallback: Whether the most recent non-empty count fell back

    Example:
        counter = TokenCounter()  # reads ANTHROPIC_API_KEY
        tokens = await counter.count(section_xml)
        print(counter.stats())
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        *,
        base_url: str = ANTHROPIC_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        counter: Optional[CounterFunc] = None,
    ):
        """Initialize the token counter.

        Args:
            api_key: Anthropic API key. If not provided, reads from
                ANTHROPIC_API_KEY env var. Without a key every count falls back.
            model: Model identifier used for counting
            base_url: API base URL
            timeout: Request timeout in seconds
            counter: Optional replacement for the HTTP call. May be sync or
                async; any exception it raises triggers the fallback.
        """
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._counter = counter

        self.api_count = 0
        self.fallback_count = 0
        self.last_used_fallback = False

    @property
    def model(self) -> str:
        return self._model

    async def count(self, text: Optional[str]) -> int:
        """Count tokens in text.

        Args:
            text: Text to count

        Returns:
            Token count; 0 for empty or whitespace-only text
        """
        if not text or not text.strip():
            return 0

        try:
            tokens = await self._count_exact(text)
        except TokenCountError as e:
            self.fallback_count += 1
            self.last_used_fallback = True
            logger.warning(f"Token count API failed, using approximation: {e}")
            return estimate_tokens(text)

        self.api_count += 1
        self.last_used_fallback = False
        return tokens

    async def _count_exact(self, text: str) -> int:
        """Run the exact counter, normalizing every failure to TokenCountError."""
        if self._counter is not None:
            try:
                result = self._counter(text)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                raise TokenCountError(f"custom counter failed: {e}") from e
            return self._validate_count(result)

        if not self._api_key:
            raise TokenCountError("no API key configured")

        url = f"{self._base_url}{COUNT_TOKENS_ENDPOINT}"
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self._model,
            "messages": [{"role": "user", "content": text}],
        }

        # URL, header encoding and transport errors all surface here
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        except Exception as e:
            raise TokenCountError(f"request failed: {e}") from e

        if response.status_code >= 400:
            raise TokenCountError(f"API error {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise TokenCountError(f"invalid JSON response: {e}") from e

        if not isinstance(data, dict) or "input_tokens" not in data:
            raise TokenCountError("response missing input_tokens")
        return self._validate_count(data["input_tokens"])

    @staticmethod
    def _validate_count(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise TokenCountError(f"invalid token count: {value!r}")
        return value

    def stats(self) -> dict[str, Any]:
        """Return counting statistics.

        Returns:
            Dict with api_count, fallback_count and last_used_fallback
        """
        return {
            "api_count": self.api_count,
            "fallback_count": self.fallback_count,
            "last_used_fallback": self.last_used_fallback,
        }

    def reset_stats(self) -> None:
        self.api_count = 0
        self.fallback_count = 0
        self.last_used_fallback = False
