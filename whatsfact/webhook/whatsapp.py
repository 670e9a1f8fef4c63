"""Twilio WhatsApp transport: signature verification and direct push sends."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client

logger = logging.getLogger(__name__)


class PushSendError(Exception):
    """Raised when the direct send API rejects or fails a message."""


class TwilioSignatureVerifier:
    """Validates the X-Twilio-Signature header of inbound webhooks."""

    def __init__(self, auth_token: str) -> None:
        self._validator = RequestValidator(auth_token)

    def verify(self, url: str, params: Mapping[str, str], signature: str | None) -> bool:
        if not signature:
            return False
        return bool(self._validator.validate(url, dict(params), signature))


class TwilioPushSender:
    """Sends a message through the Twilio REST API, outside the HTTP reply.

    The SDK call is blocking, so it runs in a worker thread.
    """

    def __init__(self, account_sid: str, auth_token: str, client: Client | None = None) -> None:
        self._client = client or Client(account_sid, auth_token)

    async def send(
        self,
        from_: str,
        to: str,
        text: str,
        media_url: str | None = None,
    ) -> str:
        """Return the message SID of the queued message."""
        kwargs: dict[str, object] = {"from_": from_, "to": to, "body": text}
        if media_url:
            kwargs["media_url"] = [media_url]
        try:
            message = await asyncio.to_thread(self._client.messages.create, **kwargs)
        except (TwilioException, OSError) as exc:
            raise PushSendError(str(exc)) from exc
        logger.info("Push message queued: %s", message.sid)
        return str(message.sid)
