"""Fact-check pipeline for one inbound WhatsApp message.

Stages:
1. Classify the input (text, voice note, image, nothing)
2. Fetch the attachment, when there is one
3. Normalize it to text (transcript or image description)
4. Enrich with a URL risk score and linked content
5. Ask the reasoning provider
6. Sanitize and bound the answer
7. Synthesize a spoken reply for voice notes

Mandatory stages (fetch, normalization, reasoning) end the request with a
fixed, non-technical reply when they fail. Optional stages degrade silently.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from whatsfact.models import AuditEvent, AuditEventType, InputKind, RiskLevel
from whatsfact.pipeline.enrichment import enrich, find_first_url
from whatsfact.pipeline.normalizers import (
    combine_caption,
    extract_url_content,
    normalize_audio,
    normalize_image,
)
from whatsfact.pipeline.prompt import build_messages, parse_status, render_answer
from whatsfact.pipeline.synthesis import speech_extract
from whatsfact.webhook.classifier import classify
from whatsfact.webhook.media import CredentialsMissingError, MediaFetchError
from whatsfact.webhook.models import DeliverablePayload, InboundEvent, PipelineOutcome

if TYPE_CHECKING:
    from whatsfact.audit.logger import AuditLogger
    from whatsfact.pipeline.synthesis import SpeechSynthesisAdapter
    from whatsfact.providers.base import (
        ContentExtractor,
        Reasoner,
        RiskScorer,
        Transcriber,
        VisionAnnotator,
    )
    from whatsfact.sanitizer.sanitizer import AnswerSanitizer

logger = logging.getLogger(__name__)

NO_INPUT_REPLY = "Please send me a message, voice note, image or link to fact-check!"
CONFIG_MISSING_REPLY = (
    "Sorry, the fact-checker is not fully set up right now. Please try again later."
)
MEDIA_FETCH_REPLY = (
    "Sorry, I couldn't download your attachment. Please try sending it again."
)
VOICE_RETRY_REPLY = (
    "Sorry, I couldn't understand your voice message. "
    "Please try again or type your question."
)
IMAGE_RETRY_REPLY = (
    "Sorry, I couldn't read anything in that image. "
    "Please try a clearer picture or type the claim."
)
REASONING_FAILURE_REPLY = (
    "Sorry, I'm having trouble processing your request right now. "
    "Please try again in a moment."
)

DEFAULT_ANSWER_CHARS = 1200


class MediaFetcher(Protocol):
    async def fetch(self, url: str) -> bytes: ...


class FactCheckPipeline:
    """Runs every stage for a single inbound event.

    Provider handles are injected; any of them may be None when its
    credentials are not configured.
    """

    def __init__(
        self,
        sanitizer: AnswerSanitizer,
        reasoner: Reasoner | None,
        media_fetcher: MediaFetcher | None = None,
        transcriber: Transcriber | None = None,
        annotator: VisionAnnotator | None = None,
        extractor: ContentExtractor | None = None,
        risk_scorer: RiskScorer | None = None,
        synthesis: SpeechSynthesisAdapter | None = None,
        reply_language: str = "English",
        answer_chars: int = DEFAULT_ANSWER_CHARS,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._sanitizer = sanitizer
        self._reasoner = reasoner
        self._media_fetcher = media_fetcher
        self._transcriber = transcriber
        self._annotator = annotator
        self._extractor = extractor
        self._risk_scorer = risk_scorer
        self._synthesis = synthesis
        self._reply_language = reply_language
        self._answer_chars = answer_chars
        self._audit = audit_logger

    async def process(self, event: InboundEvent) -> PipelineOutcome:
        kind = classify(event)
        outcome = await self._run(event, kind)
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=AuditEventType.MESSAGE_PROCESSED,
                sender=event.from_address,
                action="fact_check",
                result="success" if outcome.outcome == "answered" else "degraded",
                risk_level=RiskLevel.INFO,
                details={
                    "input_kind": kind.value,
                    "outcome": outcome.outcome,
                    "status": outcome.status.value if outcome.status else None,
                    "has_audio": outcome.payload.media_url is not None,
                },
            ))
        return outcome

    async def _run(self, event: InboundEvent, kind: InputKind) -> PipelineOutcome:
        contained_url = find_first_url(event.raw_text) is not None

        def _fixed(text: str, outcome: str) -> PipelineOutcome:
            return PipelineOutcome(
                payload=DeliverablePayload(text=text),
                input_kind=kind,
                contained_url=contained_url,
                outcome=outcome,
            )

        # Stage 1: nothing to check
        if kind is InputKind.NONE:
            return _fixed(NO_INPUT_REPLY, "no_input")

        if self._reasoner is None or not self._normalizer_available(kind):
            return _fixed(CONFIG_MISSING_REPLY, "config_missing")

        # Stages 2-3: fetch and normalize
        query = event.raw_text or ""
        if kind in (InputKind.AUDIO, InputKind.IMAGE):
            try:
                media = await self._fetch(event)
            except CredentialsMissingError:
                return _fixed(CONFIG_MISSING_REPLY, "config_missing")
            except MediaFetchError as exc:
                logger.warning("Media fetch failed: %s", exc)
                if self._audit:
                    self._audit.log(AuditEvent(
                        event_type=AuditEventType.MEDIA_FETCH_FAILURE,
                        sender=event.from_address,
                        action="media_fetch",
                        result="failure",
                        risk_level=RiskLevel.MEDIUM,
                        details={"status_code": exc.status_code},
                    ))
                return _fixed(MEDIA_FETCH_REPLY, "media_fetch_failed")

            if kind is InputKind.AUDIO and self._transcriber is not None:
                normalized = await normalize_audio(
                    self._transcriber, media, event.attachment_content_type,
                )
                retry_reply = VOICE_RETRY_REPLY
            elif kind is InputKind.IMAGE and self._annotator is not None:
                normalized = await normalize_image(self._annotator, media)
                retry_reply = IMAGE_RETRY_REPLY
            else:
                return _fixed(CONFIG_MISSING_REPLY, "config_missing")
            if not normalized:
                return _fixed(retry_reply, "normalization_empty")
            query = combine_caption(event.raw_text, normalized)

        query = query.strip()
        if not query:
            return _fixed(NO_INPUT_REPLY, "no_input")

        # Stage 4: enrichment, never fatal
        signal = await enrich(self._risk_scorer, query)
        url_content = None
        if signal is not None:
            url_content = await extract_url_content(self._extractor, signal.url)

        # Stage 5: reasoning
        messages = build_messages(
            query,
            signal=signal,
            url_content=url_content,
            language=self._reply_language,
            max_chars=self._answer_chars,
        )
        try:
            answer = await self._reasoner.complete(messages)
        except Exception as exc:  # every reasoning failure becomes the apology
            logger.exception("Reasoning provider failed")
            if self._audit:
                self._audit.log(AuditEvent(
                    event_type=AuditEventType.REASONING_FAILURE,
                    sender=event.from_address,
                    action="complete",
                    result="failure",
                    risk_level=RiskLevel.HIGH,
                    details={"error": repr(exc), "input_kind": kind.value},
                ))
            return _fixed(REASONING_FAILURE_REPLY, "reasoning_failed")

        # Stage 6: sanitize and bound
        draft = parse_status(answer)
        rendered = render_answer(draft)
        text = self._sanitizer.sanitize(rendered)

        # Stage 7: voice in, voice out
        media_url = None
        if kind is InputKind.AUDIO and self._synthesis is not None:
            spoken = speech_extract(
                f"{draft.status.value.replace('-', ' ')}. "
                f"{self._sanitizer.strip_markup(draft.text)}"
            )
            audio = await self._synthesis.synthesize(spoken)
            if audio is not None:
                media_url = audio.public_url

        return PipelineOutcome(
            payload=DeliverablePayload(text=text, media_url=media_url),
            input_kind=kind,
            contained_url=contained_url,
            outcome="answered",
            status=draft.status,
        )

    def _normalizer_available(self, kind: InputKind) -> bool:
        if kind is InputKind.AUDIO:
            return self._transcriber is not None
        if kind is InputKind.IMAGE:
            return self._annotator is not None
        return True

    async def _fetch(self, event: InboundEvent) -> bytes:
        if self._media_fetcher is None:
            raise CredentialsMissingError("no media fetcher configured")
        if event.attachment_url is None:
            raise MediaFetchError(None, "<missing attachment url>")
        return await self._media_fetcher.fetch(event.attachment_url)
