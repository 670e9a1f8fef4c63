"""Speech synthesis adapter: short spoken extract, provider fallback, file output."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Sequence
from pathlib import Path

from whatsfact.providers.base import Synthesizer, first_success
from whatsfact.webhook.models import SynthesizedAudio

logger = logging.getLogger(__name__)

SPOKEN_SENTENCES = 3

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")
_UNSPEAKABLE_RE = re.compile(r"[\\*_~`#•]|https?://\S+")


def speech_extract(text: str, sentences: int = SPOKEN_SENTENCES) -> str:
    """First few sentences of already de-marked text, flattened to one line."""
    flat = " ".join(line.strip() for line in text.splitlines() if line.strip())
    flat = _UNSPEAKABLE_RE.sub("", flat)
    parts = [p.strip() for p in _SENTENCE_END_RE.split(flat) if p.strip()]
    return " ".join(parts[:sentences]).strip()


class SpeechSynthesisAdapter:
    """Tries the configured providers in order and writes the first result.

    Files are named by timestamp and served from `audio_dir` under
    `<public_base_url>/audio/`. Old files are never deleted here.
    """

    def __init__(
        self,
        providers: Sequence[Synthesizer],
        audio_dir: str,
        public_base_url: str,
    ) -> None:
        self._providers = list(providers)
        self._audio_dir = Path(audio_dir)
        self._public_base_url = public_base_url.rstrip("/")

    async def synthesize(self, text: str) -> SynthesizedAudio | None:
        """Return the written audio, or None when every provider failed."""
        if not text.strip() or not self._providers:
            return None

        result = await first_success(self._providers, lambda p: p.synthesize(text))
        if not result.ok or not result.value:
            logger.warning("Speech synthesis unavailable: %s", result.error)
            return None

        file_name = f"reply-{time.time_ns()}.mp3"
        path = self._audio_dir / file_name
        try:
            self._audio_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(result.value)
        except OSError as exc:
            logger.warning("Could not write synthesized audio %s: %s", path, exc)
            return None

        return SynthesizedAudio(
            file_name=file_name,
            path=str(path),
            public_url=f"{self._public_base_url}/audio/{file_name}",
        )
