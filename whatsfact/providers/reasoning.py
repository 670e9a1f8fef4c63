"""Perplexity Sonar reasoning provider (OpenAI-compatible chat completions)."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from whatsfact.providers.base import ProviderError

logger = logging.getLogger(__name__)

_PERPLEXITY_API_BASE = "https://api.perplexity.ai"


class PerplexityReasoner:
    """Unary, non-streaming completion call. No conversation memory."""

    def __init__(
        self,
        api_key: str,
        model: str = "sonar-pro",
        base_url: str = _PERPLEXITY_API_BASE,
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout = timeout

    async def complete(self, messages: list[dict[str, Any]]) -> str:
        url = f"{self._base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        body = {"model": self._model, "messages": messages}

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    url, json=body, headers=headers, timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise ProviderError("perplexity", f"transport error: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderError(
                "perplexity", f"HTTP {resp.status_code}: {resp.text[:200]}", resp.status_code,
            )

        try:
            content = resp.json()["choices"][0]["message"]["content"] or ""
        except (json.JSONDecodeError, IndexError, KeyError, TypeError) as exc:
            raise ProviderError("perplexity", "malformed completion response") from exc

        if not content.strip():
            raise ProviderError("perplexity", "empty completion")
        logger.debug("Perplexity answer length: %d", len(content))
        return content
