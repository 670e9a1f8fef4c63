"""Deepgram speech-to-text adapter."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_DEEPGRAM_LISTEN_URL = "https://api.deepgram.com/v1/listen"


class DeepgramTranscriber:
    """Pre-recorded transcription with a fixed language and smart formatting.

    Provider errors are logged and reported as an empty transcript, which the
    pipeline treats as "could not transcribe".
    """

    def __init__(
        self,
        api_key: str,
        language: str = "en",
        model: str = "nova-2",
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._language = language
        self._model = model
        self._timeout = timeout

    async def transcribe(self, audio: bytes, content_type: str | None = None) -> str:
        if not audio:
            return ""
        params = {
            "model": self._model,
            "language": self._language,
            "smart_format": "true",
            "punctuate": "true",
        }
        headers = {
            "Authorization": f"Token {self._api_key}",
            "Content-Type": content_type or "application/octet-stream",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    _DEEPGRAM_LISTEN_URL, params=params, headers=headers, content=audio,
                )
            if resp.status_code != 200:
                logger.warning("Deepgram error %s: %s", resp.status_code, resp.text[:200])
                return ""
            data = resp.json()
            alternatives = data["results"]["channels"][0]["alternatives"]
            transcript = alternatives[0].get("transcript", "") if alternatives else ""
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Deepgram transcription failed: %s", exc)
            return ""

        return transcript.strip()
