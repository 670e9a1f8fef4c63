"""Google Cloud Vision adapter: OCR, labels and localized objects."""

from __future__ import annotations

import base64
from typing import Any

import httpx

from whatsfact.providers.base import ProviderError

_VISION_ANNOTATE_URL = "https://vision.googleapis.com/v1/images:annotate"


class GoogleVisionAnnotator:
    """One `images:annotate` request per feature; each sub-call fails on its own."""

    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._timeout = timeout

    async def _annotate(self, image: bytes, feature: str, max_results: int) -> dict[str, Any]:
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": feature, "maxResults": max_results}],
                }
            ]
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    _VISION_ANNOTATE_URL, params={"key": self._api_key}, json=body,
                )
        except httpx.HTTPError as exc:
            raise ProviderError("google-vision", f"{feature}: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderError(
                "google-vision", f"{feature}: HTTP {resp.status_code}", resp.status_code,
            )
        try:
            result: dict[str, Any] = resp.json()["responses"][0]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError("google-vision", f"{feature}: malformed response") from exc
        if not isinstance(result, dict):
            raise ProviderError("google-vision", f"{feature}: malformed response")
        if "error" in result:
            raise ProviderError("google-vision", f"{feature}: {result['error'].get('message', '')}")
        return result

    async def extract_text(self, image: bytes) -> str:
        result = await self._annotate(image, "TEXT_DETECTION", 1)
        full = result.get("fullTextAnnotation", {}).get("text")
        if full:
            return str(full).strip()
        annotations = result.get("textAnnotations") or []
        return str(annotations[0].get("description", "")).strip() if annotations else ""

    async def label(self, image: bytes, limit: int = 5) -> list[tuple[str, float]]:
        result = await self._annotate(image, "LABEL_DETECTION", limit)
        return [
            (a.get("description", ""), float(a.get("score", 0.0)))
            for a in result.get("labelAnnotations", [])[:limit]
            if a.get("description")
        ]

    async def localize_objects(self, image: bytes, limit: int = 3) -> list[tuple[str, float]]:
        result = await self._annotate(image, "OBJECT_LOCALIZATION", limit)
        return [
            (a.get("name", ""), float(a.get("score", 0.0)))
            for a in result.get("localizedObjectAnnotations", [])[:limit]
            if a.get("name")
        ]
