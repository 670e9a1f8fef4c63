"""Modality normalizers: voice notes, images and linked content to text."""

from __future__ import annotations

import logging

from whatsfact.providers.base import ContentExtractor, ProviderError, Transcriber, VisionAnnotator

logger = logging.getLogger(__name__)

MAX_URL_CONTENT_CHARS = 4000
TOP_LABELS = 5
TOP_OBJECTS = 3


async def normalize_audio(
    transcriber: Transcriber, audio: bytes, content_type: str | None = None,
) -> str:
    """Transcript text, or "" when nothing usable came back."""
    try:
        transcript = await transcriber.transcribe(audio, content_type)
    except ProviderError as exc:
        logger.warning("Transcription failed: %s", exc)
        return ""
    return (transcript or "").strip()


def _format_scored(items: list[tuple[str, float]]) -> str:
    return ", ".join(f"{name} ({round(score * 100)}%)" for name, score in items)


async def normalize_image(annotator: VisionAnnotator, image: bytes) -> str:
    """Structured description of an image.

    Sections appear in a fixed order: extracted text, labels (top 5), then
    localized objects (top 3). A failed or empty sub-call drops its section.
    """
    sections: list[str] = []

    try:
        text = await annotator.extract_text(image)
    except ProviderError as exc:
        logger.warning("Image text extraction failed: %s", exc)
        text = ""
    if text:
        sections.append(f"Text found in image:\n{text}")

    try:
        labels = await annotator.label(image, TOP_LABELS)
    except ProviderError as exc:
        logger.warning("Image labeling failed: %s", exc)
        labels = []
    if labels:
        sections.append(f"Image labels: {_format_scored(labels[:TOP_LABELS])}")

    try:
        objects = await annotator.localize_objects(image, TOP_OBJECTS)
    except ProviderError as exc:
        logger.warning("Object localization failed: %s", exc)
        objects = []
    if objects:
        sections.append(f"Objects detected: {_format_scored(objects[:TOP_OBJECTS])}")

    return "\n\n".join(sections)


async def extract_url_content(extractor: ContentExtractor | None, url: str) -> str | None:
    """Linked page or video transcript text; None when unavailable."""
    if extractor is None:
        return None
    try:
        content = await extractor.extract(url)
    except ProviderError as exc:
        logger.warning("URL content extraction failed for %s: %s", url, exc)
        return None
    content = content.strip()
    if len(content) > MAX_URL_CONTENT_CHARS:
        content = content[:MAX_URL_CONTENT_CHARS].rstrip() + "…"
    return content or None


def combine_caption(caption: str | None, normalized: str) -> str:
    """The caption goes first, then the attachment text after a blank line."""
    caption = (caption or "").strip()
    if caption and normalized:
        return f"{caption}\n\n{normalized}"
    return caption or normalized
