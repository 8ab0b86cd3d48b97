from __future__ import annotations

"""Application settings using Pydantic Settings.

Loads configuration from environment variables and optional .env file.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Placeholder value shipped in old .env templates; treated as "no key"
OPENAI_KEY_PLACEHOLDER = "your_openai_api_key_here"


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default


class QuotaSettings(BaseModel):
    per_minute: int = 10
    per_day: int = 500
    window_seconds: int = 60
    # purge expired per-IP windows every N checks
    prune_every: int = 100


class HeuristicSettings(BaseModel):
    short_max_bytes: int = 30000
    medium_max_bytes: int = 80000
    stride: int = 1000
    short_phrases: list[str] = Field(
        default_factory=lambda: [
            "Hello", "Hi", "Yes", "No", "OK", "Thanks",
            "こんにちは", "はい", "いいえ", "ありがとう",
            "你好", "係", "唔係", "多謝",
        ]
    )
    medium_phrases: list[str] = Field(
        default_factory=lambda: [
            "How are you doing?", "I love you", "What's up?", "Good morning",
            "元気ですか？", "愛してる", "どうしたの？", "おはよう",
            "你好嗎？", "我愛你", "做緊乜嘢？", "早晨",
        ]
    )
    long_phrases: list[str] = Field(
        default_factory=lambda: [
            "I was thinking about you today and wanted to call",
            "How was your day? I hope everything went well",
            "今日のことを考えていて、電話をかけたくなった",
            "今日はどうでしたか？うまくいったことを願っています",
            "我今日諗住你，所以想打電話俾你",
            "你今日點樣？希望一切都順利",
        ]
    )
    fixed_fallback_text: str = "Hello, how are you?"


class TranslationSettings(BaseModel):
    max_text_length: int = 500
    # Return canned "[Demo]" translations instead of 500 on /api/translate/full
    demo_fallback: bool = False
    temperature: float = 0.3
    max_tokens: int = 200


class Settings(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream providers
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_whisper_model: str = "whisper-1"

    openrouter_api_key: Optional[str] = None
    openrouter_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_model: str = "openai/gpt-4o-mini"
    openrouter_referrer: Optional[str] = None

    hf_whisper_url: str = "https://api-inference.huggingface.co/models/openai/whisper-large-v3"
    hf_api_token: Optional[str] = None
    hf_enabled: bool = True

    # Shared secrets (bearer tokens)
    api_secret: Optional[str] = None
    admin_secret: Optional[str] = None

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 8080
    log_level: str = "INFO"
    http_timeout_seconds: float = 30.0
    # Daily quota boundary (minutes from UTC)
    timezone_offset_minutes: int = 0

    # Features
    speech_quota: QuotaSettings = QuotaSettings(per_minute=5, per_day=50)
    translation_quota: QuotaSettings = QuotaSettings(per_minute=10, per_day=500)
    heuristic: HeuristicSettings = HeuristicSettings()
    translation: TranslationSettings = TranslationSettings()

    # Content filter deny-list (case-insensitive regexes)
    blocked_patterns: list[str] = Field(
        default_factory=lambda: [
            r"hack", r"exploit", r"bypass", r"attack", r"malicious",
            r"\bapi[_\s]?key\b", r"\btoken\b", r"\bpassword\b",
        ]
    )

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in levels:
            raise ValueError("Invalid LOG_LEVEL")
        return v.upper()

    @property
    def openai_configured(self) -> bool:
        key = (self.openai_api_key or "").strip()
        return bool(key) and key != OPENAI_KEY_PLACEHOLDER

    def model_post_init(self, __context: dict[str, object]) -> None:  # type: ignore[override]
        """Map flat env vars into nested settings for convenience."""

        self.speech_quota.per_minute = _get_int_env("SPEECH_PER_MINUTE", self.speech_quota.per_minute)
        self.speech_quota.per_day = _get_int_env("SPEECH_PER_DAY", self.speech_quota.per_day)
        self.translation_quota.per_minute = _get_int_env("TRANSLATION_PER_MINUTE", self.translation_quota.per_minute)
        self.translation_quota.per_day = _get_int_env("TRANSLATION_PER_DAY", self.translation_quota.per_day)

        self.heuristic.short_max_bytes = _get_int_env("HEURISTIC_SHORT_MAX_BYTES", self.heuristic.short_max_bytes)
        self.heuristic.medium_max_bytes = _get_int_env("HEURISTIC_MEDIUM_MAX_BYTES", self.heuristic.medium_max_bytes)
        self.heuristic.stride = _get_int_env("HEURISTIC_STRIDE", self.heuristic.stride)

        self.translation.demo_fallback = _get_bool_env("TRANSLATION_DEMO_FALLBACK", self.translation.demo_fallback)
        self.translation.max_text_length = _get_int_env("MAX_TEXT_LENGTH", self.translation.max_text_length)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""

    return Settings()
