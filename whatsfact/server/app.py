"""FastAPI application: Twilio WhatsApp webhook, health check and audio files."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import resource
import time
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from whatsfact.audit.logger import AuditLogger
from whatsfact.config import Settings
from whatsfact.models import AuditEvent, AuditEventType, RiskLevel
from whatsfact.pipeline.synthesis import SpeechSynthesisAdapter
from whatsfact.providers import (
    DeepgramTranscriber,
    ElevenLabsSynthesizer,
    GoogleVisionAnnotator,
    OpenAISynthesizer,
    PerplexityReasoner,
    ScamMinderScorer,
    SupadataExtractor,
    Synthesizer,
)
from whatsfact.sanitizer.sanitizer import AnswerSanitizer
from whatsfact.webhook.classifier import parse_inbound
from whatsfact.webhook.delivery import DeliveryCoordinator
from whatsfact.webhook.media import TwilioMediaFetcher
from whatsfact.webhook.relay import DEFAULT_ANSWER_CHARS, FactCheckPipeline
from whatsfact.webhook.whatsapp import TwilioPushSender, TwilioSignatureVerifier

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/whatsapp"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = Settings.from_env()
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path) if settings.audit_log_path else None
    )
    pipeline = build_pipeline(settings, audit_logger)
    coordinator = build_coordinator(settings, audit_logger)
    verifier = None
    if settings.twilio_validate_signature and settings.twilio_auth_token:
        verifier = TwilioSignatureVerifier(settings.twilio_auth_token)
    return create_app(settings, pipeline, coordinator, audit_logger, verifier)


def build_synthesizers(settings: Settings) -> list[Synthesizer]:
    """Configured TTS providers, primary first."""
    available: dict[str, Synthesizer] = {}
    if settings.elevenlabs_api_key:
        available["elevenlabs"] = ElevenLabsSynthesizer(
            settings.elevenlabs_api_key, settings.elevenlabs_voice_id,
        )
    if settings.openai_api_key:
        available["openai"] = OpenAISynthesizer(settings.openai_api_key)

    primary = settings.tts_provider.lower()
    ordered = [available[primary]] if primary in available else []
    ordered.extend(p for name, p in available.items() if name != primary)
    return ordered


def build_pipeline(
    settings: Settings, audit_logger: AuditLogger | None = None,
) -> FactCheckPipeline:
    """Construct the process-wide provider handles and wire them in."""
    synthesizers = build_synthesizers(settings)
    synthesis = None
    if synthesizers and settings.public_base_url:
        synthesis = SpeechSynthesisAdapter(
            synthesizers, settings.audio_dir, settings.public_base_url,
        )

    return FactCheckPipeline(
        sanitizer=AnswerSanitizer(max_length=settings.max_reply_chars),
        reasoner=(
            PerplexityReasoner(settings.perplexity_api_key, settings.perplexity_model)
            if settings.perplexity_api_key else None
        ),
        media_fetcher=TwilioMediaFetcher(
            settings.twilio_account_sid, settings.twilio_auth_token,
        ),
        transcriber=(
            DeepgramTranscriber(settings.deepgram_api_key, settings.stt_language)
            if settings.deepgram_api_key else None
        ),
        annotator=(
            GoogleVisionAnnotator(settings.google_vision_api_key)
            if settings.google_vision_api_key else None
        ),
        extractor=(
            SupadataExtractor(settings.supadata_api_key)
            if settings.supadata_api_key else None
        ),
        risk_scorer=(
            ScamMinderScorer(settings.scamminder_api_key)
            if settings.scamminder_api_key else None
        ),
        synthesis=synthesis,
        reply_language=settings.reply_language,
        answer_chars=min(DEFAULT_ANSWER_CHARS, settings.max_reply_chars),
        audit_logger=audit_logger,
    )


def build_coordinator(
    settings: Settings, audit_logger: AuditLogger | None = None,
) -> DeliveryCoordinator:
    push_sender = None
    if settings.twilio_account_sid and settings.twilio_auth_token:
        push_sender = TwilioPushSender(settings.twilio_account_sid, settings.twilio_auth_token)
    return DeliveryCoordinator(push_sender=push_sender, audit_logger=audit_logger)


async def _keep_alive(base_url: str, interval: int) -> None:
    """Ping our own health endpoint every `interval` seconds."""
    url = f"{base_url.rstrip('/')}/health"
    while True:
        await asyncio.sleep(interval)
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.get(url)
            logger.debug("Keep-alive ping %s -> %s", url, resp.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Keep-alive ping to %s failed: %s", url, exc)


def create_app(
    settings: Settings,
    pipeline: FactCheckPipeline,
    coordinator: DeliveryCoordinator,
    audit_logger: AuditLogger | None = None,
    verifier: TwilioSignatureVerifier | None = None,
) -> FastAPI:
    """Create the webhook FastAPI app."""

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = None
        if settings.keepalive_url:
            task = asyncio.create_task(
                _keep_alive(settings.keepalive_url, settings.keepalive_interval),
            )
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    started_at = time.monotonic()

    @app.get("/health")
    async def health() -> dict[str, object]:
        usage = resource.getrusage(resource.RUSAGE_SELF)
        return {
            "status": "ok",
            "uptime_seconds": round(time.monotonic() - started_at, 1),
            "max_rss_kb": usage.ru_maxrss,
        }

    @app.post(WEBHOOK_PATH)
    async def whatsapp_webhook(request: Request) -> Response:
        form = await request.form()
        params = {key: str(value) for key, value in form.items()}

        if verifier is not None:
            url = _public_url(request, settings.public_base_url)
            signature = request.headers.get("x-twilio-signature")
            if not verifier.verify(url, params, signature):
                if audit_logger:
                    audit_logger.log(AuditEvent(
                        event_type=AuditEventType.SIGNATURE_FAILURE,
                        sender=params.get("From"),
                        action=f"POST {WEBHOOK_PATH}",
                        result="failure",
                        risk_level=RiskLevel.HIGH,
                    ))
                return JSONResponse({"error": "Invalid webhook signature"}, status_code=403)

        event = parse_inbound(params)
        outcome = await pipeline.process(event)
        result = await coordinator.deliver(event, outcome)
        logger.info(
            "Handled %s message (%s), delivered via %s",
            outcome.input_kind.value, outcome.outcome, result.choice.value,
        )
        return Response(content=result.twiml, media_type="text/xml")

    audio_dir = Path(settings.audio_dir)
    audio_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/audio", StaticFiles(directory=str(audio_dir)), name="audio")

    return app


def _public_url(request: Request, public_base_url: str | None) -> str:
    """URL Twilio signed: the public base URL when configured, else the request URL."""
    if not public_base_url:
        return str(request.url)
    url = f"{public_base_url.rstrip('/')}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url
