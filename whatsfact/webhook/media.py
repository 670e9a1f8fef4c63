"""Authenticated retrieval of Twilio media attachments."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT_SECONDS = 30.0


class CredentialsMissingError(Exception):
    """Raised when transport credentials are not configured."""


class MediaFetchError(Exception):
    """Raised when the transport rejects or fails the media request."""

    def __init__(self, status_code: int | None, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Media fetch failed ({status_code}) for {url}")


class TwilioMediaFetcher:
    """Fetches attachment bytes using HTTP basic auth with the account SID.

    Twilio answers media URLs with a redirect to short-lived storage, so
    redirects are followed. A failed fetch is not retried.
    """

    def __init__(self, account_sid: str | None, auth_token: str | None) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token

    async def fetch(self, url: str) -> bytes:
        if not self._account_sid or not self._auth_token:
            raise CredentialsMissingError("Twilio account SID or auth token missing")

        try:
            async with httpx.AsyncClient(
                auth=(self._account_sid, self._auth_token),
                follow_redirects=True,
                timeout=_FETCH_TIMEOUT_SECONDS,
            ) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Media fetch transport error for %s: %s", url, exc)
            raise MediaFetchError(None, url) from exc

        if resp.status_code >= 400:
            raise MediaFetchError(resp.status_code, url)
        return resp.content
