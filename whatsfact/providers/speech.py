"""Text-to-speech providers: ElevenLabs and OpenAI. Both return MP3 bytes."""

from __future__ import annotations

import httpx

from whatsfact.providers.base import ProviderError

_ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"
_OPENAI_SPEECH_URL = "https://api.openai.com/v1/audio/speech"


async def _post_for_audio(
    provider: str,
    url: str,
    headers: dict[str, str],
    body: dict[str, object],
    timeout: float,
) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(url, json=body, headers=headers)
    except httpx.HTTPError as exc:
        raise ProviderError(provider, f"transport error: {exc}") from exc

    if resp.status_code != 200:
        raise ProviderError(provider, f"HTTP {resp.status_code}", resp.status_code)
    if not resp.content:
        raise ProviderError(provider, "empty audio")
    return resp.content


class ElevenLabsSynthesizer:
    name = "elevenlabs"

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        model_id: str = "eleven_multilingual_v2",
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._voice_id = voice_id
        self._model_id = model_id
        self._timeout = timeout

    async def synthesize(self, text: str) -> bytes:
        return await _post_for_audio(
            self.name,
            f"{_ELEVENLABS_API_BASE}/text-to-speech/{self._voice_id}",
            {"xi-api-key": self._api_key, "Accept": "audio/mpeg"},
            {"text": text, "model_id": self._model_id},
            self._timeout,
        )


class OpenAISynthesizer:
    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "tts-1",
        voice: str = "alloy",
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._voice = voice
        self._timeout = timeout

    async def synthesize(self, text: str) -> bytes:
        return await _post_for_audio(
            self.name,
            _OPENAI_SPEECH_URL,
            {"Authorization": f"Bearer {self._api_key}"},
            {
                "model": self._model,
                "voice": self._voice,
                "input": text,
                "response_format": "mp3",
            },
            self._timeout,
        )
