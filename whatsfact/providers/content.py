"""Supadata URL content extraction (web pages and YouTube transcripts)."""

from __future__ import annotations

import re

import httpx

from whatsfact.providers.base import ProviderError

_SUPADATA_API_BASE = "https://api.supadata.ai/v1"
_YOUTUBE_RE = re.compile(r"^https?://(www\.|m\.)?(youtube\.com|youtu\.be)/", re.IGNORECASE)


def is_youtube_url(url: str) -> bool:
    return bool(_YOUTUBE_RE.match(url))


class SupadataExtractor:
    def __init__(
        self,
        api_key: str,
        base_url: str = _SUPADATA_API_BASE,
        timeout: float = 45.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def extract(self, url: str) -> str:
        if is_youtube_url(url):
            endpoint = f"{self._base_url}/youtube/transcript"
            params = {"url": url, "text": "true"}
        else:
            endpoint = f"{self._base_url}/web/scrape"
            params = {"url": url}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    endpoint, params=params, headers={"x-api-key": self._api_key},
                )
        except httpx.HTTPError as exc:
            raise ProviderError("supadata", f"transport error: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderError("supadata", f"HTTP {resp.status_code}", resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError("supadata", "malformed response") from exc
        if not isinstance(data, dict):
            raise ProviderError("supadata", "malformed response")

        content = data.get("content")
        if isinstance(content, list):
            # Transcripts without text=true come back as timed segments
            if not all(isinstance(seg, dict) for seg in content):
                raise ProviderError("supadata", "malformed transcript")
            content = " ".join(str(seg.get("text", "")) for seg in content)
        if not content or not str(content).strip():
            raise ProviderError("supadata", "no content extracted")
        return str(content).strip()
