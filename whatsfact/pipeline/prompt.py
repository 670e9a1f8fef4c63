"""Reasoning query assembly and structured status parsing."""

from __future__ import annotations

import re
from typing import Any

from whatsfact.models import VerificationStatus
from whatsfact.webhook.models import AnswerDraft, EnrichmentSignal

STATUS_EMOJI = {
    VerificationStatus.VERIFIED: "✅",
    VerificationStatus.UNVERIFIED_FAKE: "❌",
    VerificationStatus.PARTIALLY_TRUE: "⚠️",
    VerificationStatus.UNCLEAR: "❓",
}

SYSTEM_PREAMBLE = """\
You are a calm, friendly fact-checking assistant that people reach over WhatsApp.
They forward you claims, voice notes, screenshots and links and want to know
whether to trust them.

Output rules:
1. The FIRST line must be exactly "STATUS: <marker>", where <marker> is one of
   VERIFIED, UNVERIFIED-FAKE, PARTIALLY-TRUE, UNCLEAR. Nothing else on that line.
2. Then give a short verdict sentence, followed by the key evidence as a few
   short lines. Mention reputable sources by name.
3. If a link risk score is provided, take it into account and say so when the
   link looks dangerous.
4. Always answer in {language}, whatever language the user wrote in.
5. Plain text only. Keep the whole answer under {max_chars} characters.
"""

_STATUS_LINE_RE = re.compile(
    r"^[\s*_#>`~]*status[\s*_`~]*[:\-–][\s*_`~]*"
    r"(UNVERIFIED[\s_-]*FAKE|PARTIALLY[\s_-]*TRUE|VERIFIED|UNCLEAR)\b[\s*_`~.]*$",
    re.IGNORECASE,
)

_STATUS_TOKENS = {
    "UNVERIFIEDFAKE": VerificationStatus.UNVERIFIED_FAKE,
    "PARTIALLYTRUE": VerificationStatus.PARTIALLY_TRUE,
    "VERIFIED": VerificationStatus.VERIFIED,
    "UNCLEAR": VerificationStatus.UNCLEAR,
}


def build_messages(
    query: str,
    signal: EnrichmentSignal | None = None,
    url_content: str | None = None,
    language: str = "English",
    max_chars: int = 1200,
) -> list[dict[str, Any]]:
    """Build the unary chat request: fixed preamble plus query and signals."""
    parts = [f"Message to fact-check:\n{query}"]
    if url_content:
        parts.append(f"Content retrieved from the linked page:\n{url_content}")
    if signal is not None:
        parts.append(f"Link risk data for {signal.url}:\n{signal.narrative}")
    else:
        parts.append("Link risk data: no additional data.")
    return [
        {
            "role": "system",
            "content": SYSTEM_PREAMBLE.format(language=language, max_chars=max_chars),
        },
        {"role": "user", "content": "\n\n".join(parts)},
    ]


def parse_status(answer: str) -> AnswerDraft:
    """Split the provider's leading STATUS line from the answer body.

    A missing or malformed status line maps to UNCLEAR and the whole answer
    is kept as the body.
    """
    text = answer.strip()
    first, _, rest = text.partition("\n")
    match = _STATUS_LINE_RE.match(first.strip())
    if not match:
        return AnswerDraft(status=VerificationStatus.UNCLEAR, text=text)
    token = re.sub(r"[\s_-]", "", match.group(1)).upper()
    return AnswerDraft(status=_STATUS_TOKENS[token], text=rest.strip())


def render_answer(draft: AnswerDraft) -> str:
    """Answer text that begins with the status marker token."""
    head = f"{draft.status.value} {STATUS_EMOJI[draft.status]}"
    return f"{head}\n{draft.text}" if draft.text else head
