"""URL detection and risk-signal enrichment for the normalized query."""

from __future__ import annotations

import logging
import re

from whatsfact.providers.base import RiskScorer
from whatsfact.providers.risk import RISK_UNAVAILABLE
from whatsfact.webhook.models import EnrichmentSignal

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"(?:https?://|www\.)[^\s<>()\[\]\"'\\]+", re.IGNORECASE)

# Sentence punctuation and markup that commonly trails a pasted link
_URL_TRAILING = ".,;:!?*_~`"


def trim_url(candidate: str) -> str:
    return candidate.rstrip(_URL_TRAILING)


def find_first_url(text: str | None) -> str | None:
    """Single first-match scan; later URLs are ignored."""
    if not text:
        return None
    match = URL_RE.search(text)
    if not match:
        return None
    url = trim_url(match.group(0))
    if url.lower().startswith("www."):
        url = f"https://{url}"
    return url or None


async def enrich(scorer: RiskScorer | None, text: str) -> EnrichmentSignal | None:
    """Look up a risk score for the first URL in `text`.

    Returns None when no URL is present. A scorer that is missing or that
    raises degrades to the placeholder narrative instead of failing.
    """
    url = find_first_url(text)
    if url is None:
        return None
    if scorer is None:
        return EnrichmentSignal(url=url, narrative=RISK_UNAVAILABLE)
    try:
        narrative = await scorer.score(url)
    except Exception as exc:  # degrade to the placeholder on any scorer failure
        logger.warning("Risk lookup failed for %s: %s", url, exc)
        narrative = RISK_UNAVAILABLE
    return EnrichmentSignal(url=url, narrative=narrative or RISK_UNAVAILABLE)
