"""Environment-driven settings for the webhook service."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


class Settings(BaseModel):
    """Credentials, endpoints and tunables consumed by the pipeline.

    Every credential is optional: a provider whose key is missing is simply
    not constructed, and the pipeline reacts to its absence.
    """

    model_config = ConfigDict(frozen=True)

    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_validate_signature: bool = False

    perplexity_api_key: str | None = None
    perplexity_model: str = "sonar-pro"

    deepgram_api_key: str | None = None
    stt_language: str = "en"

    google_vision_api_key: str | None = None
    supadata_api_key: str | None = None
    scamminder_api_key: str | None = None

    tts_provider: str = "elevenlabs"  # "elevenlabs" or "openai"
    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    openai_api_key: str | None = None

    public_base_url: str | None = None
    audio_dir: str = "data/audio"
    reply_language: str = "English"
    max_reply_chars: int = Field(default=1600, gt=0)

    audit_log_path: str | None = None
    keepalive_url: str | None = None
    keepalive_interval: int = Field(default=600, gt=0)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables."""
        values: dict[str, object] = {
            "twilio_account_sid": _env("TWILIO_ACCOUNT_SID"),
            "twilio_auth_token": _env("TWILIO_AUTH_TOKEN"),
            "twilio_validate_signature": (
                (_env("TWILIO_VALIDATE_SIGNATURE") or "").lower() in _TRUTHY
            ),
            "perplexity_api_key": _env("PERPLEXITY_API_KEY"),
            "deepgram_api_key": _env("DEEPGRAM_API_KEY"),
            "google_vision_api_key": _env("GOOGLE_VISION_API_KEY"),
            "supadata_api_key": _env("SUPADATA_API_KEY"),
            "scamminder_api_key": _env("SCAMMINDER_API_KEY"),
            "elevenlabs_api_key": _env("ELEVENLABS_API_KEY"),
            "openai_api_key": _env("OPENAI_API_KEY"),
            "public_base_url": _env("PUBLIC_BASE_URL"),
            "audit_log_path": _env("AUDIT_LOG_PATH"),
            "keepalive_url": _env("KEEPALIVE_URL"),
        }
        optional = {
            "perplexity_model": "PERPLEXITY_MODEL",
            "stt_language": "STT_LANGUAGE",
            "tts_provider": "TTS_PROVIDER",
            "elevenlabs_voice_id": "ELEVENLABS_VOICE_ID",
            "audio_dir": "AUDIO_DIR",
            "reply_language": "REPLY_LANGUAGE",
            "max_reply_chars": "MAX_REPLY_CHARS",
            "keepalive_interval": "KEEPALIVE_INTERVAL",
        }
        for field_name, var in optional.items():
            value = _env(var)
            if value is not None:
                values[field_name] = value
        return cls.model_validate(values)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)
