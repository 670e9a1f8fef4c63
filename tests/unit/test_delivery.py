"""Tests for delivery coordination and TwiML rendering."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.conftest import make_event
from whatsfact.models import AuditEventType, DeliveryChoice, InputKind
from whatsfact.webhook.delivery import DeliveryCoordinator, decide_delivery, render_twiml
from whatsfact.webhook.models import DeliverablePayload, PipelineOutcome
from whatsfact.webhook.whatsapp import PushSendError


def _make_outcome(**kwargs: Any) -> PipelineOutcome:
    defaults: dict[str, Any] = {
        "payload": DeliverablePayload(text="VERIFIED ✅\nIt checks out."),
        "input_kind": InputKind.TEXT,
        "contained_url": False,
    }
    defaults.update(kwargs)
    return PipelineOutcome(**defaults)


def _make_push_sender(error: Exception | None = None) -> MagicMock:
    sender = MagicMock()
    sender.send = AsyncMock(return_value="SM123", side_effect=error)
    return sender


class TestDecideDelivery:
    def test_push_sent_means_async(self) -> None:
        assert decide_delivery(DeliverablePayload(text="x"), push_sent=True) is DeliveryChoice.ASYNC_PUSH

    def test_text_means_sync_reply(self) -> None:
        assert decide_delivery(DeliverablePayload(text="x"), push_sent=False) is DeliveryChoice.SYNC_REPLY

    def test_nothing_means_empty_ack(self) -> None:
        assert decide_delivery(DeliverablePayload(text=""), push_sent=False) is DeliveryChoice.EMPTY_ACK


class TestRenderTwiml:
    def test_sync_reply_with_media(self) -> None:
        payload = DeliverablePayload(text="Fish & chips", media_url="https://b.example/audio/a.mp3")
        twiml = render_twiml(DeliveryChoice.SYNC_REPLY, payload)
        assert "<Body>Fish &amp; chips</Body>" in twiml
        assert "<Media>https://b.example/audio/a.mp3</Media>" in twiml

    def test_async_push_renders_empty_response(self) -> None:
        twiml = render_twiml(DeliveryChoice.ASYNC_PUSH, DeliverablePayload(text="hello"))
        assert "<Message" not in twiml
        assert "<Response" in twiml


class TestDeliveryCoordinator:
    @pytest.mark.asyncio
    async def test_no_url_uses_sync_reply(self) -> None:
        sender = _make_push_sender()
        coordinator = DeliveryCoordinator(push_sender=sender)
        result = await coordinator.deliver(make_event(), _make_outcome())

        assert result.choice is DeliveryChoice.SYNC_REPLY
        assert "It checks out." in result.twiml
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_url_message_pushed_once_and_twiml_empty(self) -> None:
        sender = _make_push_sender()
        coordinator = DeliveryCoordinator(push_sender=sender)
        result = await coordinator.deliver(make_event(), _make_outcome(contained_url=True))

        assert result.choice is DeliveryChoice.ASYNC_PUSH
        assert "<Message" not in result.twiml
        sender.send.assert_called_once_with(
            from_="whatsapp:+15559990000",
            to="whatsapp:+15550001111",
            text="VERIFIED ✅\nIt checks out.",
            media_url=None,
        )

    @pytest.mark.asyncio
    async def test_push_failure_falls_back_to_sync_reply(self, mock_audit_logger: MagicMock) -> None:
        sender = _make_push_sender(error=PushSendError("21211 invalid number"))
        coordinator = DeliveryCoordinator(push_sender=sender, audit_logger=mock_audit_logger)
        result = await coordinator.deliver(make_event(), _make_outcome(contained_url=True))

        assert result.choice is DeliveryChoice.SYNC_REPLY
        assert "It checks out." in result.twiml
        logged = mock_audit_logger.log.call_args[0][0]
        assert logged.event_type is AuditEventType.PUSH_FAILURE

    @pytest.mark.asyncio
    async def test_no_push_sender_configured(self) -> None:
        coordinator = DeliveryCoordinator()
        result = await coordinator.deliver(make_event(), _make_outcome(contained_url=True))
        assert result.choice is DeliveryChoice.SYNC_REPLY

    @pytest.mark.asyncio
    async def test_missing_sender_address_skips_push(self) -> None:
        sender = _make_push_sender()
        coordinator = DeliveryCoordinator(push_sender=sender)
        result = await coordinator.deliver(
            make_event(from_address=None), _make_outcome(contained_url=True),
        )
        assert result.choice is DeliveryChoice.SYNC_REPLY
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_business_address_skips_push(self) -> None:
        sender = _make_push_sender()
        coordinator = DeliveryCoordinator(push_sender=sender)
        result = await coordinator.deliver(
            make_event(to_address=None), _make_outcome(contained_url=True),
        )
        assert result.choice is DeliveryChoice.SYNC_REPLY
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_push_failure_audited_against_user(self, mock_audit_logger: MagicMock) -> None:
        sender = _make_push_sender(error=PushSendError("21211 invalid number"))
        coordinator = DeliveryCoordinator(push_sender=sender, audit_logger=mock_audit_logger)
        await coordinator.deliver(make_event(), _make_outcome(contained_url=True))

        logged = mock_audit_logger.log.call_args[0][0]
        assert logged.sender == "whatsapp:+15550001111"
