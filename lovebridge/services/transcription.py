from __future__ import annotations

"""Speech-to-text fallback pipeline.

Stages run in order (primary API, secondary API) and the first success
wins. When every real provider fails, the heuristic demo generator
produces a transcript; if even that raises, a fixed phrase is returned.
The pipeline therefore always resolves to some text.
"""

from typing import Sequence

from lovebridge.schemas.api_io import AudioAnalysis, Intensity, TranscriptionResult
from lovebridge.services.heuristic import HeuristicTranscriber
from lovebridge.services.logging import get_logger
from lovebridge.services.metrics import Metrics
from lovebridge.services.stt_clients import (
    SOURCE_FIXED,
    SOURCE_HEURISTIC,
    StageOutcome,
    TranscriptionStrategy,
)


class TranscriptionPipeline:
    def __init__(
        self,
        strategies: Sequence[TranscriptionStrategy],
        heuristic: HeuristicTranscriber,
        *,
        fixed_fallback_text: str = "Hello, how are you?",
        metrics: Metrics | None = None,
    ) -> None:
        self.strategies = list(strategies)
        self.heuristic = heuristic
        self.fixed_fallback_text = fixed_fallback_text
        self.metrics = metrics

    def _count(self, outcome: StageOutcome) -> None:
        if self.metrics is not None:
            self.metrics.inc(
                "stt_stage_total",
                labels={"source": outcome.source, "outcome": "ok" if outcome.ok else "failed"},
            )

    def _heuristic_stage(self, audio: bytes) -> StageOutcome:
        pick = self.heuristic.pick(audio)
        return StageOutcome.success(
            SOURCE_HEURISTIC,
            pick.text,
            demo=True,
            bucket=pick.bucket,
            audio_length=pick.audio_length,
            intensity=pick.intensity,
        )

    async def run(self, audio: bytes, mime_type: str = "audio/wav") -> TranscriptionResult:
        logger = get_logger().bind(audio_bytes=len(audio), mime_type=mime_type)
        failures: list[str] = []

        for strategy in self.strategies:
            try:
                outcome = await strategy.transcribe(audio, mime_type)
            except Exception as e:
                logger.warning("stt_stage_raised", provider=strategy.name, exc_info=True)
                outcome = StageOutcome.failure(strategy.source, f"error: {type(e).__name__}")
            self._count(outcome)
            if outcome.ok:
                logger.info("stt_pipeline_done", source=outcome.source, provider=strategy.name)
                return TranscriptionResult(text=outcome.text, success=True, demo=False, source=outcome.source)
            failures.append(f"{strategy.name}:{outcome.reason}")
            logger.info("stt_stage_failed", provider=strategy.name, reason=outcome.reason)

        try:
            outcome = self._heuristic_stage(audio)
        except Exception:
            logger.error("stt_heuristic_failed", exc_info=True, failures=failures)
            outcome = StageOutcome.success(SOURCE_FIXED, self.fixed_fallback_text, demo=True)
            self._count(outcome)
            return TranscriptionResult(text=outcome.text, success=True, demo=True, source=SOURCE_FIXED)

        self._count(outcome)
        analysis = AudioAnalysis(
            audio_length=outcome.extra["audio_length"],
            intensity=Intensity(**outcome.extra["intensity"]),
        )
        logger.info(
            "stt_pipeline_demo",
            bucket=outcome.extra["bucket"],
            intensity=outcome.extra["intensity"],
            failures=failures,
        )
        return TranscriptionResult(
            text=outcome.text,
            success=True,
            demo=True,
            source=SOURCE_HEURISTIC,
            audio_analysis=analysis,
        )
