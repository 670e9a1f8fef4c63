"""Delivery coordinator: exactly one non-empty reply per inbound message.

When the inbound text contained a URL, the reply is also pushed through the
direct send API. If that push succeeds the synchronous TwiML answer is left
empty, so the user never receives the same message twice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from twilio.twiml.messaging_response import MessagingResponse

from whatsfact.models import AuditEvent, AuditEventType, DeliveryChoice, RiskLevel
from whatsfact.webhook.models import (
    DeliverablePayload,
    DeliveryResult,
    InboundEvent,
    PipelineOutcome,
)
from whatsfact.webhook.whatsapp import PushSendError

if TYPE_CHECKING:
    from whatsfact.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    async def send(
        self, from_: str, to: str, text: str, media_url: str | None = None,
    ) -> str: ...


def decide_delivery(payload: DeliverablePayload, push_sent: bool) -> DeliveryChoice:
    """Pick the single channel that carries the reply."""
    if push_sent:
        return DeliveryChoice.ASYNC_PUSH
    if payload.text:
        return DeliveryChoice.SYNC_REPLY
    return DeliveryChoice.EMPTY_ACK


def render_twiml(choice: DeliveryChoice, payload: DeliverablePayload) -> str:
    """TwiML for the synchronous HTTP answer."""
    response = MessagingResponse()
    if choice is DeliveryChoice.SYNC_REPLY:
        message = response.message()
        message.body(payload.text)
        if payload.media_url:
            message.media(payload.media_url)
    return str(response)


class DeliveryCoordinator:
    def __init__(
        self,
        push_sender: PushSender | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._push_sender = push_sender
        self._audit = audit_logger

    async def deliver(self, event: InboundEvent, outcome: PipelineOutcome) -> DeliveryResult:
        push_sent = False
        sender, business = event.from_address, event.to_address
        push_sender = self._push_sender
        if (
            push_sender is not None
            and outcome.contained_url
            and outcome.payload.text
            and sender
            and business
        ):
            # Reply goes back from the business number to the sender
            push_sent = await self._push(push_sender, business, sender, outcome.payload)

        choice = decide_delivery(outcome.payload, push_sent)
        return DeliveryResult(choice=choice, twiml=render_twiml(choice, outcome.payload))

    async def _push(
        self, push_sender: PushSender, from_: str, to: str, payload: DeliverablePayload,
    ) -> bool:
        try:
            await push_sender.send(
                from_=from_,
                to=to,
                text=payload.text,
                media_url=payload.media_url,
            )
        except PushSendError as exc:
            logger.warning("Push delivery failed, using TwiML reply: %s", exc)
            if self._audit:
                self._audit.log(AuditEvent(
                    event_type=AuditEventType.PUSH_FAILURE,
                    sender=to,
                    action="push_send",
                    result="degraded",
                    risk_level=RiskLevel.LOW,
                    details={"error": str(exc)},
                ))
            return False
        return True
