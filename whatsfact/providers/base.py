"""Capability interfaces for external providers and the fallback chain helper."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")


class ProviderError(Exception):
    """Raised by a provider adapter when the upstream call fails."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


@dataclass
class ProviderResult(Generic[T]):
    ok: bool
    value: T | None = None
    error: str | None = None

    @staticmethod
    def success(value: T) -> ProviderResult[T]:
        return ProviderResult(ok=True, value=value)

    @staticmethod
    def failure(error: str) -> ProviderResult[T]:
        return ProviderResult(ok=False, error=error)


async def first_success(
    providers: Sequence[P],
    call: Callable[[P], Awaitable[T]],
) -> ProviderResult[T]:
    """Try each provider in order and stop at the first one that succeeds."""
    errors: list[str] = []
    for provider in providers:
        try:
            return ProviderResult.success(await call(provider))
        except ProviderError as exc:
            logger.warning("Provider %s failed: %s", exc.provider, exc)
            errors.append(str(exc))
    if not errors:
        return ProviderResult.failure("no providers configured")
    return ProviderResult.failure("; ".join(errors))


# --- Capability protocols ---


class Transcriber(Protocol):
    async def transcribe(self, audio: bytes, content_type: str | None = None) -> str: ...


class VisionAnnotator(Protocol):
    async def extract_text(self, image: bytes) -> str: ...

    async def label(self, image: bytes, limit: int = 5) -> list[tuple[str, float]]: ...

    async def localize_objects(self, image: bytes, limit: int = 3) -> list[tuple[str, float]]: ...


class ContentExtractor(Protocol):
    async def extract(self, url: str) -> str: ...


class RiskScorer(Protocol):
    async def score(self, url: str) -> str: ...


class Reasoner(Protocol):
    async def complete(self, messages: list[dict[str, Any]]) -> str: ...


class Synthesizer(Protocol):
    name: str

    async def synthesize(self, text: str) -> bytes: ...
