"""Shared Pydantic data models for whatsfact."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class InputKind(str, Enum):
    TEXT = "text"
    AUDIO = "audio"
    IMAGE = "image"
    NONE = "none"


class VerificationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    UNVERIFIED_FAKE = "UNVERIFIED-FAKE"
    PARTIALLY_TRUE = "PARTIALLY-TRUE"
    UNCLEAR = "UNCLEAR"


class DeliveryChoice(str, Enum):
    SYNC_REPLY = "sync_reply"
    ASYNC_PUSH = "async_push"
    EMPTY_ACK = "empty_ack"


class AuditEventType(str, Enum):
    MESSAGE_PROCESSED = "message_processed"
    MEDIA_FETCH_FAILURE = "media_fetch_failure"
    REASONING_FAILURE = "reasoning_failure"
    PUSH_FAILURE = "push_failure"
    SIGNATURE_FAILURE = "signature_failure"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Sanitizer Models ---


class MarkupRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str  # inline flags such as (?m) carry matching options
    replacement: str
    description: str = ""


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    sender: str | None = None
    action: str
    result: str  # "success" | "failure" | "degraded"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
