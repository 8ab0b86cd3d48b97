from __future__ import annotations

"""Per-process application state, created once in the FastAPI lifespan.

Holds every piece of mutable bookkeeping (quota gates, usage tracker,
metrics) and the shared outbound HTTP client. Handlers receive it through
a dependency instead of reaching for module globals.
"""

import random
from dataclasses import dataclass

import httpx

from lovebridge.config.settings import Settings
from lovebridge.schemas.api_io import DailyLimits
from lovebridge.services.content_filter import ContentFilter
from lovebridge.services.heuristic import HeuristicTranscriber
from lovebridge.services.metrics import Metrics
from lovebridge.services.quota import QuotaGate
from lovebridge.services.stt_clients import HuggingFaceWhisperClient, OpenAIWhisperClient
from lovebridge.services.transcription import TranscriptionPipeline
from lovebridge.services.translator import OpenRouterTranslator
from lovebridge.services.usage import UsageTracker


@dataclass
class AppState:
    settings: Settings
    http: httpx.AsyncClient
    metrics: Metrics
    speech_gate: QuotaGate
    translation_gate: QuotaGate
    usage: UsageTracker
    content_filter: ContentFilter
    transcriber: TranscriptionPipeline
    translator: OpenRouterTranslator

    async def aclose(self) -> None:
        await self.http.aclose()


def build_state(
    settings: Settings,
    *,
    http: httpx.AsyncClient | None = None,
    rng: random.Random | None = None,
) -> AppState:
    http = http or httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))
    metrics = Metrics()
    offset = settings.timezone_offset_minutes

    speech_gate = QuotaGate("speech", settings.speech_quota, offset_minutes=offset)
    translation_gate = QuotaGate("translation", settings.translation_quota, offset_minutes=offset)

    usage = UsageTracker(
        max_translations=settings.translation_quota.per_day,
        max_speech_requests=settings.speech_quota.per_day,
    )

    def _apply_limits(limits: DailyLimits) -> None:
        translation_gate.daily.update_limit(limits.max_translations)
        speech_gate.daily.update_limit(limits.max_speech_requests)

    usage.on_limits_changed(_apply_limits)

    primary = OpenAIWhisperClient(
        http,
        api_key=settings.openai_api_key if settings.openai_configured else None,
        base_url=settings.openai_base_url,
        model=settings.openai_whisper_model,
        metrics=metrics,
    )
    secondary = HuggingFaceWhisperClient(
        http,
        url=settings.hf_whisper_url,
        api_token=settings.hf_api_token,
        enabled=settings.hf_enabled,
        metrics=metrics,
    )
    transcriber = TranscriptionPipeline(
        [primary, secondary],
        HeuristicTranscriber(settings.heuristic, rng=rng),
        fixed_fallback_text=settings.heuristic.fixed_fallback_text,
        metrics=metrics,
    )
    translator = OpenRouterTranslator(
        http,
        api_key=settings.openrouter_api_key,
        url=settings.openrouter_url,
        model=settings.openrouter_model,
        temperature=settings.translation.temperature,
        max_tokens=settings.translation.max_tokens,
        referrer=settings.openrouter_referrer,
        metrics=metrics,
        on_success=lambda: usage.track("translation"),
    )
    return AppState(
        settings=settings,
        http=http,
        metrics=metrics,
        speech_gate=speech_gate,
        translation_gate=translation_gate,
        usage=usage,
        content_filter=ContentFilter(settings.blocked_patterns),
        transcriber=transcriber,
        translator=translator,
    )
