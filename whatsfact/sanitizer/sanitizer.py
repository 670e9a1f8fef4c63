"""Answer sanitizer: turns raw provider answers into WhatsApp-safe, bounded text.

Stages, in order:
1. markup rules (code, links, citations, headings, emphasis, bullets)
2. whitespace rules (trailing spaces, runs of blank lines)
3. escaping of WhatsApp formatting characters outside URLs
4. length bounding with a status-preserving shortening pass

Sanitizing already-sanitized text is a no-op.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from whatsfact.models import MarkupRule, VerificationStatus
from whatsfact.pipeline.enrichment import URL_RE, trim_url

MAX_REPLY_CHARS = 1600  # Twilio WhatsApp body limit
SHORTENED_BUDGET = 1200
MAX_LINE_CHARS = 280
MIN_PARTIAL_LINE = 80

MORE_AVAILABLE_NOTICE = (
    "(Answer shortened to fit WhatsApp. Ask about one specific claim for more detail.)"
)

MARKUP_RULES: tuple[MarkupRule, ...] = (
    MarkupRule(name="code_fence", pattern=r"(?s)(?<!\\)```[\w+-]*\n?(.*?)```", replacement=r"\1"),
    MarkupRule(name="inline_code", pattern=r"(?<!\\)`([^`\n]+)`", replacement=r"\1"),
    MarkupRule(
        name="link",
        pattern=r"\[([^\]\n]+)\]\(((?:https?://|www\.)[^)\s]+)\)",
        replacement=r"\1 (\2)",
        description="Markdown link to 'text (url)'",
    ),
    MarkupRule(
        name="citation",
        pattern=r"[ \t]*\[\d+(?:[ \t]*[,–-][ \t]*\d+)*\]",
        replacement="",
        description="Bracketed citation markers such as [1] or [2, 3]",
    ),
    MarkupRule(
        name="horizontal_rule",
        pattern=r"(?m)^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$",
        replacement="",
    ),
    MarkupRule(name="heading", pattern=r"(?m)^[ \t]{0,3}#{1,6}(?:[ \t]+|$)", replacement=""),
    MarkupRule(name="bullet", pattern=r"(?m)^([ \t]*)[*+-][ \t]+", replacement="\\1• "),
    MarkupRule(name="bold_asterisk", pattern=r"\*\*(?=\S)(.+?)(?<=\S)\*\*", replacement=r"\1"),
    MarkupRule(name="bold_underscore", pattern=r"__(?=\S)(.+?)(?<=\S)__", replacement=r"\1"),
    MarkupRule(name="strikethrough", pattern=r"~~(?=\S)(.+?)(?<=\S)~~", replacement=r"\1"),
    MarkupRule(
        name="italic_asterisk",
        pattern=r"(?<![\\*\w])\*(?=\S)([^*\n]+?)(?<=\S)\*(?![*\w])",
        replacement=r"\1",
    ),
    MarkupRule(
        name="italic_underscore",
        pattern=r"(?<![\\_\w])_(?=\S)([^_\n]+?)(?<=\S)_(?![_\w])",
        replacement=r"\1",
    ),
    MarkupRule(name="stray_emphasis", pattern=r"\*\*|__|~~", replacement=""),
    MarkupRule(name="trailing_space", pattern=r"(?m)[ \t]+$", replacement=""),
    MarkupRule(name="blank_lines", pattern=r"\n{3,}", replacement="\n\n"),
)

_ESCAPE_RE = re.compile(r"(?<!\\)([*_~`])")
_PLACEHOLDER_RE = re.compile("\x00(\\d+)\x00")
_ESCAPED_RE = re.compile(r"\\[*_~`]")
_ESCAPE_SLOT_RE = re.compile("\x01(\\d+)\x01")
_RESERVED_SLOT_CHARS = re.compile("[\x00\x01]")
_STATUS_LINE_RE = re.compile(
    "^(?:"
    + "|".join(
        re.escape(s.value) for s in sorted(VerificationStatus, key=lambda s: -len(s.value))
    )
    + r")\b"
)


class AnswerSanitizer:
    """Ordered rule table plus escaping and bounding for outbound replies."""

    def __init__(
        self,
        rules: Sequence[MarkupRule] = MARKUP_RULES,
        max_length: int = MAX_REPLY_CHARS,
        shortened_budget: int = SHORTENED_BUDGET,
        max_line_chars: int = MAX_LINE_CHARS,
        notice: str = MORE_AVAILABLE_NOTICE,
    ) -> None:
        self._rules = list(rules)
        self._compiled = [(rule, re.compile(rule.pattern)) for rule in self._rules]
        self._max_length = max_length
        self._shortened_budget = shortened_budget
        self._max_line_chars = max_line_chars
        self._notice = notice

    def sanitize(self, text: str) -> str:
        """Run every stage and return text no longer than `max_length`."""
        text, escapes = self._protect_escapes(_RESERVED_SLOT_CHARS.sub("", text))
        protected, urls = self._protect_urls(self._clean(text))
        escaped = self._restore_urls(_ESCAPE_RE.sub(r"\\\1", protected), urls)
        return self.bound(self._restore_escapes(escaped, escapes))

    def strip_markup(self, text: str) -> str:
        """Markup and whitespace stages only, without escaping or bounding."""
        text, escapes = self._protect_escapes(_RESERVED_SLOT_CHARS.sub("", text))
        return self._restore_escapes(self._clean(text), escapes)

    def _clean(self, text: str) -> str:
        """Apply the rule table until the text stops changing.

        Removing one construct can expose another, such as emphasis wrapped
        around a heading marker or nested code spans.
        """
        while True:
            protected, urls = self._protect_urls(self._apply_rules(text, only=("link",)))
            cleaned = self._apply_rules(protected, skip=("link",))
            cleaned = self._restore_urls(cleaned, urls).strip()
            if cleaned == text:
                return cleaned
            text = cleaned

    def bound(self, text: str) -> str:
        """Enforce the length ceiling, keeping the leading status marker."""
        if len(text) <= self._max_length:
            return text

        reserve = len(self._notice) + 2
        budget = max(0, min(self._shortened_budget, self._max_length - reserve))
        line_cap = max(1, min(self._max_line_chars, budget))

        lines = text.split("\n")
        kept: list[str] = []
        used = 0
        status = _STATUS_LINE_RE.match(lines[0]) if lines else None
        if status:
            head = self._cut(lines[0], max(line_cap, status.end() + 1))
            kept.append(head)
            used = len(head)
            lines = lines[1:]

        for line in lines:
            line = self._cut(line, line_cap)
            cost = len(line) + (1 if kept else 0)
            if used + cost <= budget:
                kept.append(line)
                used += cost
                continue
            remaining = budget - used - (1 if kept else 0)
            if remaining >= MIN_PARTIAL_LINE:
                kept.append(self._cut(line, remaining))
            break

        body = "\n".join(kept).strip()
        result = f"{body}\n\n{self._notice}" if body else self._notice
        if len(result) > self._max_length:
            # Hard cut as a last resort
            if self._max_length > reserve:
                result = f"{result[: self._max_length - reserve].rstrip()}\n\n{self._notice}"
            result = result[: self._max_length].rstrip()
        return result

    def _apply_rules(
        self,
        text: str,
        only: tuple[str, ...] | None = None,
        skip: tuple[str, ...] = (),
    ) -> str:
        for rule, pattern in self._compiled:
            if only is not None and rule.name not in only:
                continue
            if rule.name in skip:
                continue
            text = pattern.sub(rule.replacement, text)
        return text

    @staticmethod
    def _cut(line: str, limit: int) -> str:
        if len(line) <= limit:
            return line
        return line[: max(0, limit - 1)].rstrip() + "…"

    @staticmethod
    def _protect_urls(text: str) -> tuple[str, list[str]]:
        """Swap URLs for opaque placeholders so no rule or escape touches them."""
        urls: list[str] = []

        def _swap(match: re.Match[str]) -> str:
            raw = match.group(0)
            url = trim_url(raw)
            if not url:
                return raw
            urls.append(url)
            return f"\x00{len(urls) - 1}\x00{raw[len(url):]}"

        return URL_RE.sub(_swap, text), urls

    @staticmethod
    def _restore_urls(text: str, urls: list[str]) -> str:
        return _PLACEHOLDER_RE.sub(lambda m: urls[int(m.group(1))], text)

    @staticmethod
    def _protect_escapes(text: str) -> tuple[str, list[str]]:
        """Hide already-escaped characters so no rule reads them as markup."""
        escapes: list[str] = []

        def _swap(match: re.Match[str]) -> str:
            escapes.append(match.group(0))
            return f"\x01{len(escapes) - 1}\x01"

        return _ESCAPED_RE.sub(_swap, text), escapes

    @staticmethod
    def _restore_escapes(text: str, escapes: list[str]) -> str:
        return _ESCAPE_SLOT_RE.sub(lambda m: escapes[int(m.group(1))], text)
