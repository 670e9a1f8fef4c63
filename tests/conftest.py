"""Shared test fixtures for whatsfact."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from whatsfact.audit.logger import AuditLogger
from whatsfact.models import InputKind
from whatsfact.providers.base import ProviderError
from whatsfact.sanitizer.sanitizer import AnswerSanitizer
from whatsfact.webhook.models import InboundEvent

SAMPLE_ANSWER = (
    "STATUS: UNVERIFIED-FAKE\n"
    "**Verdict:** Lemon water does not cure cancer.\n"
    "## Evidence\n"
    "- The American Cancer Society reports no such effect [1].\n"
    "- Reviews of *dietary* claims found no benefit [2][3].\n"
)


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def sanitizer() -> AnswerSanitizer:
    return AnswerSanitizer()


# --- Provider test doubles ---


class FakeReasoner:
    def __init__(self, answer: str = SAMPLE_ANSWER, error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[list[dict[str, Any]]] = []

    async def complete(self, messages: list[dict[str, Any]]) -> str:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.answer


class FakeSynthesizer:
    def __init__(self, name: str, audio: bytes = b"ID3audio", fail: bool = False) -> None:
        self.name = name
        self.audio = audio
        self.fail = fail
        self.calls: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        if self.fail:
            raise ProviderError(self.name, "boom")
        return self.audio


def make_media_fetcher(content: bytes = b"media-bytes") -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=content)
    return fetcher


def make_transcriber(transcript: str = "Drinking lemon water cures cancer") -> MagicMock:
    transcriber = MagicMock()
    transcriber.transcribe = AsyncMock(return_value=transcript)
    return transcriber


def make_annotator(
    text: str = "BREAKING: lemon water cures cancer",
    labels: list[tuple[str, float]] | None = None,
    objects: list[tuple[str, float]] | None = None,
) -> MagicMock:
    annotator = MagicMock()
    annotator.extract_text = AsyncMock(return_value=text)
    annotator.label = AsyncMock(return_value=labels or [])
    annotator.localize_objects = AsyncMock(return_value=objects or [])
    return annotator


def make_event(**kwargs: Any) -> InboundEvent:
    """Factory for InboundEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "raw_text": "Drinking lemon water cures cancer",
        "attachment_kind": InputKind.NONE,
        "attachment_url": None,
        "attachment_content_type": None,
        "from_address": "whatsapp:+15550001111",
        "to_address": "whatsapp:+15559990000",
    }
    defaults.update(kwargs)
    return InboundEvent(**defaults)
