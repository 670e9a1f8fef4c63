"""Input classification for Twilio WhatsApp webhook form payloads.

The decision uses only the declared media type of the first attachment and
whether body text is present. Attachment bytes are never inspected.
"""

from __future__ import annotations

from collections.abc import Mapping

from whatsfact.models import InputKind
from whatsfact.webhook.models import InboundEvent


def _field(form: Mapping[str, str], name: str) -> str | None:
    value = form.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _kind_for_content_type(content_type: str | None) -> InputKind:
    if not content_type:
        return InputKind.NONE
    major = content_type.split("/", 1)[0].strip().lower()
    if major == "audio":
        return InputKind.AUDIO
    if major == "image":
        return InputKind.IMAGE
    return InputKind.NONE


def parse_inbound(form: Mapping[str, str]) -> InboundEvent:
    """Build an InboundEvent from Twilio's form fields.

    Only attachment index 0 is read; further attachments are ignored.
    """
    try:
        num_media = int(_field(form, "NumMedia") or "0")
    except ValueError:
        num_media = 0

    content_type = _field(form, "MediaContentType0")
    media_url = _field(form, "MediaUrl0")
    if num_media < 1 and not media_url:
        content_type = None
        media_url = None

    kind = _kind_for_content_type(content_type) if media_url else InputKind.NONE
    return InboundEvent(
        raw_text=_field(form, "Body"),
        attachment_kind=kind,
        attachment_url=media_url if kind is not InputKind.NONE else None,
        attachment_content_type=content_type if kind is not InputKind.NONE else None,
        from_address=_field(form, "From"),
        to_address=_field(form, "To"),
    )


def classify(event: InboundEvent) -> InputKind:
    """Return exactly one of TEXT, AUDIO, IMAGE or NONE for the event."""
    if event.attachment_kind in (InputKind.AUDIO, InputKind.IMAGE) and event.attachment_url:
        return event.attachment_kind
    if event.raw_text:
        return InputKind.TEXT
    return InputKind.NONE
