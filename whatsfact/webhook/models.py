"""Data models for the fact-check webhook pipeline.

Every object here lives for a single inbound message and is never shared
across requests.
"""

from __future__ import annotations

from dataclasses import dataclass

from whatsfact.models import DeliveryChoice, InputKind, VerificationStatus


@dataclass(frozen=True)
class InboundEvent:
    """One parsed webhook delivery. Immutable after parsing."""

    raw_text: str | None = None
    attachment_kind: InputKind = InputKind.NONE
    attachment_url: str | None = None
    attachment_content_type: str | None = None
    from_address: str | None = None
    to_address: str | None = None


@dataclass(frozen=True)
class EnrichmentSignal:
    """Side-channel risk narrative for the first URL found in the query."""

    url: str
    narrative: str


@dataclass(frozen=True)
class AnswerDraft:
    """Raw provider answer with its parsed verification status."""

    status: VerificationStatus
    text: str


@dataclass(frozen=True)
class SynthesizedAudio:
    file_name: str
    path: str
    public_url: str


@dataclass(frozen=True)
class DeliverablePayload:
    """Bounded, transport-safe reply text plus at most one audio link."""

    text: str
    media_url: str | None = None


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of processing one inbound event, before delivery."""

    payload: DeliverablePayload
    input_kind: InputKind
    contained_url: bool = False
    outcome: str = "answered"
    status: VerificationStatus | None = None


@dataclass(frozen=True)
class DeliveryResult:
    choice: DeliveryChoice
    twiml: str
