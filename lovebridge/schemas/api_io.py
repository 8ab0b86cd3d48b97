from __future__ import annotations

"""Pydantic models for the public HTTP contract.

Wire names are camelCase (the browser client's convention); Python attribute
names are snake_case.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


TranslationMode = Literal["toJapanese", "toCantonese", "toEnglish"]
FullTranslationMode = Literal["toJapanese", "toCantonese"]
TranscriptionSource = Literal["primary-api", "secondary-api", "heuristic-demo", "fixed-fallback"]


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- speech ---------------------------------------------------------------


class SpeechRequest(_Wire):
    audio_data: Optional[str] = Field(default=None, alias="audioData")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")


class Intensity(_Wire):
    average: int
    max: int


class AudioAnalysis(_Wire):
    audio_length: int = Field(alias="audioLength")
    intensity: Intensity


class TranscriptionResult(_Wire):
    text: str
    success: bool = True
    demo: bool = False
    source: TranscriptionSource
    audio_analysis: Optional[AudioAnalysis] = Field(default=None, alias="audioAnalysis")


# --- translation ----------------------------------------------------------


class TranslateRequest(_Wire):
    text: str
    mode: str


class TranslateResponse(_Wire):
    translation: str
    success: bool = True


class FullTranslationRequest(_Wire):
    text: str
    mode: str


class TranslationResult(_Wire):
    original: str
    japanese: str
    cantonese: str
    english: str
    demo: bool = False
    success: bool = True


# --- admin ----------------------------------------------------------------


class DailyLimits(_Wire):
    max_translations: int = Field(alias="maxTranslations")
    max_speech_requests: int = Field(alias="maxSpeechRequests")


class UsageStats(_Wire):
    total_translations: int = Field(default=0, alias="totalTranslations")
    total_speech_requests: int = Field(default=0, alias="totalSpeechRequests")
    estimated_cost: float = Field(default=0.0, alias="estimatedCost")
    last_reset: datetime = Field(alias="lastReset")
    daily_limits: DailyLimits = Field(alias="dailyLimits")


class UsageSnapshot(UsageStats):
    uptime_hours: float = Field(alias="uptimeHours")
    average_translations_per_hour: float = Field(alias="averageTranslationsPerHour")
    remaining_daily_translations: int = Field(alias="remainingDailyTranslations")
    remaining_daily_speech: int = Field(alias="remainingDailySpeech")
    status: Literal["active"] = "active"


class AdminAction(_Wire):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    action: Optional[str] = None
    max_translations: Optional[int] = Field(default=None, alias="maxTranslations")
    max_speech_requests: Optional[int] = Field(default=None, alias="maxSpeechRequests")


class AdminActionResponse(_Wire):
    message: str
    usage_stats: UsageStats = Field(alias="usageStats")
