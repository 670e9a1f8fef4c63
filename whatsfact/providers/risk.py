"""ScamMinder URL risk scoring."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_SCAMMINDER_URL = "https://scamminder.com/rest-api"

RISK_UNAVAILABLE = "Could not check scam status."


class ScamMinderScorer:
    """Returns a human-readable score line. Never raises."""

    def __init__(self, api_key: str, url: str = _SCAMMINDER_URL, timeout: float = 20.0) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout = timeout

    async def score(self, url: str) -> str:
        payload = {"endpoint": "scam_score", "website": url}
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
            resp.raise_for_status()
            body = resp.json().get("body") or {}
            score = body.get("scam_score") if isinstance(body, dict) else None
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("ScamMinder lookup failed for %s: %s", url, exc)
            return RISK_UNAVAILABLE

        return f"Scam Score for {url}: {score if score not in (None, '') else 'Unknown'}"
